"""Construction and submission of translation job requests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

from doctr_core.ports.orchestrator import SubmissionError
from doctr_core.ports.storage import StorageBackendProtocol
from doctr_core.ports.translation import (
    TranslationBackendProtocol,
    TranslationServiceError,
)
from doctr_schemas.jobs import (
    GlossaryDescriptor,
    JobRequest,
    ServiceError,
    SourceSpec,
    TargetSpec,
)
from doctr_schemas.primitives import AccessLevel
from doctr_schemas.storage import RunContainerNames

AUTO_DETECT_LANGUAGE = "auto"


def resolve_source_language(language: str | None) -> str | None:
    """Return the explicit source language, or None for automatic detection.

    Returns:
        str | None: Language code, or None when empty or ``"auto"``.
    """
    if language is None:
        return None
    cleaned = language.strip()
    if not cleaned or cleaned.lower() == AUTO_DETECT_LANGUAGE:
        return None
    return cleaned


class JobSubmitter:
    """Build the job request for a run and submit it to the service."""

    def __init__(
        self,
        storage: StorageBackendProtocol,
        translation: TranslationBackendProtocol,
        *,
        url_expiry: timedelta = timedelta(hours=5),
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """Initialize the job submitter.

        Args:
            storage: Storage backend issuing container URLs.
            translation: Translation service receiving the job.
            url_expiry: Lifetime of the source and target container URLs.
            now: Current time provider.
        """
        self._storage = storage
        self._translation = translation
        self._url_expiry = url_expiry
        self._now = now

    def build_request(
        self,
        containers: RunContainerNames,
        target_language: str,
        *,
        source_language: str | None = None,
        glossaries: Sequence[GlossaryDescriptor] = (),
        category: str | None = None,
    ) -> JobRequest:
        """Build a single-target job request for the run's containers.

        Args:
            containers: Run container names.
            target_language: Target language code.
            source_language: Source language, or None/``"auto"`` to detect.
            glossaries: Glossaries attached to the target.
            category: Optional custom translator category.

        Returns:
            JobRequest: Request with full-access, time-limited container URLs.
        """
        expiry = self._now() + self._url_expiry
        source_url = self._storage.generate_container_url(
            containers.source, AccessLevel.FULL, expiry
        )
        target_url = self._storage.generate_container_url(
            containers.target, AccessLevel.FULL, expiry
        )
        return JobRequest(
            source=SourceSpec(
                source_url=source_url,
                language=resolve_source_language(source_language),
            ),
            targets=[
                TargetSpec(
                    target_url=target_url,
                    language=target_language,
                    glossaries=list(glossaries),
                    category=category or None,
                )
            ],
        )

    async def submit(self, request: JobRequest) -> str:
        """Submit a job request.

        Returns:
            str: Opaque processing-location handle of the job.

        Raises:
            SubmissionError: If the service rejects the request.
        """
        try:
            handle = await self._translation.submit_job(request)
        except TranslationServiceError as exc:
            raise SubmissionError(exc.error) from exc
        if not handle:
            raise SubmissionError(
                ServiceError(
                    code="MissingProcessingLocation",
                    message="Service accepted the job without a processing location",
                )
            )
        return handle
