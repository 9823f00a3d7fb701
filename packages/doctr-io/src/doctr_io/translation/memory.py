"""In-memory translation backend that simulates batch jobs."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from urllib.parse import urlsplit
from uuid import uuid4

from doctr_core.ports.translation import (
    TranslationBackendProtocol,
    TranslationServiceError,
)
from doctr_core.run_log import now_timestamp
from doctr_io.storage.memory import MEMORY_URL_SCHEME, InMemoryStorageBackend
from doctr_schemas.jobs import (
    DocumentFormat,
    JobRequest,
    JobStatusSnapshot,
    LanguageInfo,
    ServiceError,
    StatusSummary,
)
from doctr_schemas.primitives import Timestamp

DEFAULT_DOCUMENT_FORMATS = (
    DocumentFormat(
        format="PlainText", file_extensions=[".txt"], content_types=["text/plain"]
    ),
    DocumentFormat(
        format="WordDocument",
        file_extensions=[".docx"],
        content_types=[
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        ],
    ),
    DocumentFormat(
        format="PortableDocumentFormat",
        file_extensions=[".pdf"],
        content_types=["application/pdf"],
    ),
    DocumentFormat(
        format="HTML", file_extensions=[".html", ".htm"], content_types=["text/html"]
    ),
    DocumentFormat(
        format="Markdown", file_extensions=[".md", ".markdown"], content_types=[]
    ),
)
DEFAULT_GLOSSARY_FORMATS = (
    DocumentFormat(format="TSV", file_extensions=[".tsv", ".tab"]),
    DocumentFormat(format="CSV", file_extensions=[".csv"]),
    DocumentFormat(format="XLIFF", file_extensions=[".xlf", ".xliff"]),
    DocumentFormat(format="TMX", file_extensions=[".tmx"]),
)
DEFAULT_LANGUAGES = (
    LanguageInfo(code="de", name="German", native_name="Deutsch", dir="ltr"),
    LanguageInfo(code="en", name="English", native_name="English", dir="ltr"),
    LanguageInfo(code="es", name="Spanish", native_name="Español", dir="ltr"),
    LanguageInfo(code="fr", name="French", native_name="Français", dir="ltr"),
    LanguageInfo(code="ja", name="Japanese", native_name="日本語", dir="ltr"),
)


@dataclass(slots=True)
class _SimulatedJob:
    id: str
    source: str
    target: str
    documents: list[str]
    created: Timestamp
    last_action: Timestamp
    status: str
    polls: int = 0


class InMemoryTranslationBackend(TranslationBackendProtocol):
    """Translation backend over an in-memory storage backend.

    A job reports ``NotStarted``, then ``Running`` for ``running_polls``
    checks, then copies every source blob through ``transform`` into the
    target container and reports ``Succeeded``. A job with no documents
    reports ``ValidationFailed``.
    """

    def __init__(
        self,
        storage: InMemoryStorageBackend,
        *,
        formats: Sequence[DocumentFormat] = DEFAULT_DOCUMENT_FORMATS,
        glossary_formats: Sequence[DocumentFormat] = DEFAULT_GLOSSARY_FORMATS,
        languages: Sequence[LanguageInfo] = DEFAULT_LANGUAGES,
        running_polls: int = 1,
        transform: Callable[[bytes], bytes] = bytes,
        clock: Callable[[], Timestamp] = now_timestamp,
    ) -> None:
        """Initialize the simulated service.

        Args:
            storage: Storage holding the job containers.
            formats: Document formats to advertise.
            glossary_formats: Glossary formats to advertise.
            languages: Languages to advertise.
            running_polls: Status checks reporting ``Running``.
            transform: Function producing the "translated" bytes.
            clock: Timestamp provider.
        """
        self._storage = storage
        self._formats = list(formats)
        self._glossary_formats = list(glossary_formats)
        self._languages = list(languages)
        self._running_polls = running_polls
        self._transform = transform
        self._clock = clock
        self._jobs: dict[str, _SimulatedJob] = {}
        self.requests: list[JobRequest] = []

    async def submit_job(self, request: JobRequest) -> str:
        """Accept a job whose containers exist in the backing storage.

        Raises:
            TranslationServiceError: If a container URL is unusable.
        """
        self.requests.append(request)
        source = _container_from_url(request.source.source_url, "source")
        target = _container_from_url(request.targets[0].target_url, "target")
        existing = set(self._storage.container_names)
        for name, element in ((source, "source"), (target, "target")):
            if name not in existing:
                raise TranslationServiceError(
                    ServiceError(
                        code="InvalidRequest",
                        message=f"Cannot access {element} document location",
                        target=element,
                    ),
                    status_code=400,
                )
        documents = [blob.name async for blob in self._storage.list_objects(source)]
        timestamp = self._clock()
        job = _SimulatedJob(
            id=uuid4().hex,
            source=source,
            target=target,
            documents=documents,
            created=timestamp,
            last_action=timestamp,
            status="NotStarted",
        )
        self._jobs[job.id] = job
        return f"{MEMORY_URL_SCHEME}://jobs/{job.id}"

    async def check_status(self, handle: str) -> JobStatusSnapshot:
        """Advance and report a simulated job.

        Raises:
            TranslationServiceError: If the handle names no job.
        """
        job = self._jobs.get(handle.rsplit("/", 1)[-1])
        if job is None:
            raise TranslationServiceError(
                ServiceError(code="NotFound", message=f"Unknown job {handle}"),
                status_code=404,
            )
        job.polls += 1
        total = len(job.documents)
        if not job.documents:
            self._transition(job, "ValidationFailed")
            return self._snapshot(
                job,
                StatusSummary(),
                error=ServiceError(
                    code="InvalidRequest",
                    message="No translatable documents found",
                ),
            )
        if job.polls == 1:
            return self._snapshot(
                job, StatusSummary(total=total, not_yet_started=total)
            )
        if job.polls <= self._running_polls + 1:
            self._transition(job, "Running")
            return self._snapshot(job, StatusSummary(total=total, in_progress=total))
        if job.status != "Succeeded":
            for name in job.documents:
                data = await self._storage.download_object(job.source, name)
                await self._storage.upload_object(
                    job.target, name, self._transform(data)
                )
            self._transition(job, "Succeeded")
        return self._snapshot(job, StatusSummary(total=total, success=total))

    async def get_document_formats(self) -> list[DocumentFormat]:
        """Return the advertised document formats."""
        return list(self._formats)

    async def get_glossary_formats(self) -> list[DocumentFormat]:
        """Return the advertised glossary formats."""
        return list(self._glossary_formats)

    async def get_languages(self) -> list[LanguageInfo]:
        """Return the advertised languages."""
        return list(self._languages)

    def _transition(self, job: _SimulatedJob, status: str) -> None:
        if job.status != status:
            job.status = status
            job.last_action = self._clock()

    def _snapshot(
        self,
        job: _SimulatedJob,
        summary: StatusSummary,
        *,
        error: ServiceError | None = None,
    ) -> JobStatusSnapshot:
        return JobStatusSnapshot(
            id=job.id,
            status=job.status,
            created_date_time_utc=job.created,
            last_action_date_time_utc=job.last_action,
            summary=summary,
            error=error,
        )


def _container_from_url(url: str, element: str) -> str:
    parts = urlsplit(url)
    if parts.scheme != MEMORY_URL_SCHEME or not parts.netloc:
        raise TranslationServiceError(
            ServiceError(
                code="InvalidRequest",
                message=f"Unsupported {element} URL scheme: {parts.scheme or url}",
                target=element,
            ),
            status_code=400,
        )
    return parts.netloc
