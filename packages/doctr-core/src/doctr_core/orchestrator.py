"""Run orchestration for batch document translation."""

from __future__ import annotations

import asyncio
import random as _random
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import cast
from uuid import uuid4

from doctr_core.containers import ContainerLifecycleManager
from doctr_core.filtering import (
    expand_input_paths,
    extensions_from_formats,
    filter_by_extension,
)
from doctr_core.glossary import DEFAULT_GLOSSARY_FORMATS, GlossaryManager
from doctr_core.naming import ResourceNamer
from doctr_core.polling import StatusPoller
from doctr_core.ports.orchestrator import (
    ArgumentError,
    LogSinkProtocol,
    OrchestrationError,
    RunEventSinkProtocol,
    SubmissionError,
    TerminalFailureError,
    build_run_completed_log,
    build_run_failed_log,
    build_run_started_log,
)
from doctr_core.ports.storage import StorageBackendProtocol, StorageError
from doctr_core.ports.translation import (
    TranslationBackendProtocol,
    TranslationServiceError,
)
from doctr_core.run_log import RunLogger, now_timestamp
from doctr_core.submission import JobSubmitter
from doctr_core.transfer import DownloadManager, UploadManager
from doctr_schemas.config import RunConfig
from doctr_schemas.events import (
    DownloadCompletedEvent,
    FilesDiscardedEvent,
    RunEvent,
    RunLogEvent,
    StatusUpdatedEvent,
    UploadCompletedEvent,
)
from doctr_schemas.jobs import JobStatusSnapshot
from doctr_schemas.primitives import JobState, JsonValue, RunId, RunPhase, Timestamp
from doctr_schemas.responses import ErrorResponse
from doctr_schemas.results import RunResult, TransferReport
from doctr_schemas.storage import RunContainerNames, SourceFile


@dataclass(slots=True)
class TranslationRun:
    """In-memory state of one translation run."""

    run_id: RunId
    files: list[str]
    target_language: str
    source_language: str | None = None
    glossary_files: list[str] = field(default_factory=list)
    target_folder: str | None = None
    category: str | None = None
    phase: RunPhase | None = None
    state: JobState = JobState.UNKNOWN
    accepted: list[SourceFile] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)
    containers: RunContainerNames | None = None
    glossary: GlossaryManager | None = None
    handle: str | None = None
    upload: TransferReport | None = None
    download: TransferReport | None = None
    final_status: JobStatusSnapshot | None = None
    swept_containers: int | None = None
    cleaned_up: bool = False


class RunOrchestrator:
    """Sequence filtering, staging, submission, polling, download and cleanup.

    Argument problems are raised as ``ArgumentError`` before any container
    exists. Once containers are created, every exit path attempts their
    deletion exactly once (unless ``cleanup.no_delete`` is set) before the
    error propagates.
    """

    def __init__(
        self,
        storage: StorageBackendProtocol,
        translation: TranslationBackendProtocol,
        config: RunConfig | None = None,
        *,
        log_sink: LogSinkProtocol | None = None,
        event_sink: RunEventSinkProtocol | None = None,
        namer: ResourceNamer | None = None,
        clock: Callable[[], Timestamp] = now_timestamp,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        random: Callable[[], float] = _random.random,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            storage: Storage backend staging documents.
            translation: Translation service backend.
            config: Run configuration.
            log_sink: Optional log sink.
            event_sink: Optional sink receiving run notifications.
            namer: Container namer; defaults to the configured prefix.
            clock: Timestamp provider.
            now: Current time provider for URL expiry and sweeps.
            monotonic: Monotonic time source for elapsed seconds.
            sleep: Awaitable delay used between status checks.
            random: Uniform [0, 1) source for the sweep trigger.
        """
        self._storage = storage
        self._translation = translation
        self._config = config or RunConfig()
        self._log_sink = log_sink
        self._event_sink = event_sink
        self._namer = namer or ResourceNamer(self._config.storage.container_prefix)
        self._clock = clock
        self._now = now
        self._monotonic = monotonic
        self._sleep = sleep
        self._random = random

    @property
    def config(self) -> RunConfig:
        """Return the run configuration."""
        return self._config

    def create_run(
        self,
        files: Sequence[str],
        target_language: str,
        *,
        source_language: str | None = None,
        glossary_files: Sequence[str] = (),
        target_folder: str | None = None,
        category: str | None = None,
        run_id: RunId | None = None,
    ) -> TranslationRun:
        """Create the state for a new run.

        Args:
            files: Input files or directories.
            target_language: Target language code.
            source_language: Source language code, or None/``"auto"``.
            glossary_files: Glossary files to attach to the job.
            target_folder: Output directory; derived from the inputs if None.
            category: Custom translator category; defaults to configuration.
            run_id: Run identifier; a random one is generated if None.

        Returns:
            TranslationRun: Initialized run state.
        """
        return TranslationRun(
            run_id=run_id or uuid4(),
            files=list(files),
            target_language=target_language,
            source_language=source_language,
            glossary_files=list(glossary_files),
            target_folder=target_folder,
            category=category or self._config.translator.category,
        )

    async def run(self, run: TranslationRun) -> RunResult:
        """Execute a translation run end to end.

        Args:
            run: Run state created by ``create_run``.

        Returns:
            RunResult: Final state, transfer reports and target folder.

        Raises:
            ArgumentError: If the inputs cannot be translated.
            SubmissionError: If the service rejects the job.
            TerminalFailureError: If the job ends in a failed status.
            StorageError: If staging storage fails outside per-file transfers.
            TranslationServiceError: If a status or metadata call fails.
        """
        logger = RunLogger(
            run.run_id, self._log_sink, clock=self._clock, monotonic=self._monotonic
        )
        await logger.emit(
            build_run_started_log(
                logger.timestamp(), run.run_id, len(run.files), run.target_language
            )
        )
        try:
            await self._prepare(run, logger)
            await self._execute(run, logger)
        except BaseException as exc:
            if run.containers is not None and not run.cleaned_up:
                await asyncio.shield(self._cleanup(run, logger, sweep=False))
            if isinstance(exc, Exception):
                await logger.emit(
                    build_run_failed_log(
                        logger.timestamp(),
                        run.run_id,
                        _error_response(exc),
                        logger.elapsed_s,
                        run.phase,
                    )
                )
            raise
        await logger.emit(
            build_run_completed_log(
                logger.timestamp(), run.run_id, run.state, logger.elapsed_s
            )
        )
        return RunResult(
            run_id=run.run_id,
            state=run.state,
            target_folder=run.target_folder,
            discarded=list(run.discarded),
            upload=run.upload or TransferReport(),
            download=run.download,
            final_status=run.final_status,
            swept_containers=run.swept_containers,
        )

    async def _prepare(self, run: TranslationRun, logger: RunLogger) -> None:
        run.phase = RunPhase.FILTER
        if not run.files:
            raise ArgumentError("No files to translate", argument="files")
        paths = await asyncio.to_thread(expand_input_paths, run.files)
        if not paths:
            raise ArgumentError(
                "No files to translate", argument="files", provided=", ".join(run.files)
            )
        allowed = await self._resolve_extensions()
        accepted, discarded = filter_by_extension(paths, allowed)
        run.discarded = discarded
        for path in discarded:
            await logger.info(
                RunLogEvent.FILE_DISCARDED,
                f"Discarded due to invalid file format for translation: {path}",
                phase=RunPhase.FILTER,
                data={"path": path},
            )
        if discarded:
            await self._emit_event(
                FilesDiscardedEvent(
                    run_id=run.run_id, timestamp=logger.timestamp(), paths=discarded
                )
            )
        if not accepted:
            raise ArgumentError(
                "List filtered to nothing", argument="files", provided=", ".join(paths)
            )
        run.accepted = [SourceFile.from_path(path) for path in accepted]
        await self._validate_target_language(run.target_language)

    async def _execute(self, run: TranslationRun, logger: RunLogger) -> None:
        config = self._config
        url_expiry = timedelta(hours=config.storage.url_expiry_hours)
        names = self._namer.generate()
        glossary = GlossaryManager(
            self._storage,
            names.glossary,
            url_expiry=url_expiry,
            formats=await self._resolve_glossary_formats(run),
            logger=logger,
            now=self._now,
        )
        glossary.validate(run.glossary_files)
        run.glossary = glossary

        run.phase = RunPhase.CONTAINERS
        await self._phase_started(logger, RunPhase.CONTAINERS, "Container creation")
        run.containers = names
        await self._lifecycle(logger).create_run_containers(names)

        run.phase = RunPhase.UPLOAD
        await self._phase_started(
            logger, RunPhase.UPLOAD, "Documents and glossaries upload"
        )
        uploader = UploadManager(
            self._storage,
            max_parallel=config.transfer.max_parallel_transfers,
            logger=logger,
        )
        run.upload = await uploader.upload(names.source, run.accepted)
        descriptors = await glossary.upload(run.glossary_files)
        await self._emit_event(
            UploadCompletedEvent(
                run_id=run.run_id,
                timestamp=logger.timestamp(),
                count=run.upload.count,
                total_bytes=run.upload.total_bytes,
                failures=run.upload.failures,
            )
        )
        await logger.info(
            RunLogEvent.PHASE_COMPLETED,
            f"Document and glossary upload: {run.upload.total_bytes} bytes "
            f"in {run.upload.count} files",
            phase=RunPhase.UPLOAD,
            data={
                "count": run.upload.count,
                "bytes": run.upload.total_bytes,
                "failed": run.upload.failed_count,
                "glossaries": len(descriptors),
            },
        )

        run.phase = RunPhase.SUBMIT
        submitter = JobSubmitter(
            self._storage, self._translation, url_expiry=url_expiry, now=self._now
        )
        request = submitter.build_request(
            names,
            run.target_language,
            source_language=run.source_language,
            glossaries=descriptors,
            category=run.category,
        )
        try:
            run.handle = await submitter.submit(request)
        except SubmissionError as exc:
            run.final_status = JobStatusSnapshot.from_service_error(exc.error)
            run.state = JobState.FAILED
            await self._emit_status(run, logger, run.final_status, final=True)
            raise
        run.state = JobState.SUBMITTED
        await logger.info(
            RunLogEvent.JOB_SUBMITTED,
            f"Processing-Location: {run.handle}",
            phase=RunPhase.SUBMIT,
            data={"handle": run.handle},
        )
        await logger.debug(
            RunLogEvent.JOB_SUBMITTED,
            "Translation service request",
            phase=RunPhase.SUBMIT,
            data={"request": cast(JsonValue, request.to_wire())},
        )

        run.phase = RunPhase.POLL
        poller = StatusPoller(
            self._translation,
            interval_s=config.polling.interval_s,
            sleep=self._sleep,
            logger=logger,
        )

        async def _on_update(snapshot: JobStatusSnapshot, final: bool) -> None:
            await self._emit_status(run, logger, snapshot, final=final)

        outcome = await poller.poll(run.handle, _on_update)
        run.state = outcome.state
        run.final_status = outcome.snapshot
        if outcome.state == JobState.FAILED:
            raise TerminalFailureError(outcome.snapshot)

        run.phase = RunPhase.DOWNLOAD
        target_folder = run.target_folder or default_target_folder(
            run.accepted[0].path, run.target_language
        )
        run.target_folder = target_folder
        await self._phase_started(logger, RunPhase.DOWNLOAD, "Document download")
        downloader = DownloadManager(
            self._storage,
            max_parallel=config.transfer.max_parallel_transfers,
            logger=logger,
        )
        run.download = await downloader.download(names.target, target_folder)
        await self._emit_event(
            DownloadCompletedEvent(
                run_id=run.run_id,
                timestamp=logger.timestamp(),
                count=run.download.count,
                total_bytes=run.download.total_bytes,
                target_folder=target_folder,
                failures=run.download.failures,
            )
        )
        await logger.info(
            RunLogEvent.PHASE_COMPLETED,
            f"Documents downloaded: {run.download.total_bytes} bytes "
            f"in {run.download.count} files",
            phase=RunPhase.DOWNLOAD,
            data={
                "count": run.download.count,
                "bytes": run.download.total_bytes,
                "failed": run.download.failed_count,
            },
        )

        await self._cleanup(run, logger, sweep=True)
        run.phase = None

    async def _cleanup(
        self, run: TranslationRun, logger: RunLogger, *, sweep: bool
    ) -> None:
        if run.cleaned_up or run.containers is None:
            return
        run.cleaned_up = True
        if self._config.cleanup.no_delete:
            return
        lifecycle = self._lifecycle(logger)
        await lifecycle.delete_run_containers(
            run.containers, glossary=run.glossary is None
        )
        if run.glossary is not None:
            await self._delete_glossary(run.glossary, logger)
        if sweep:
            run.swept_containers = await lifecycle.maybe_sweep()

    def _lifecycle(self, logger: RunLogger) -> ContainerLifecycleManager:
        cleanup = self._config.cleanup
        return ContainerLifecycleManager(
            self._storage,
            self._namer,
            logger=logger,
            retention=timedelta(days=cleanup.retention_days),
            sweep_probability=cleanup.sweep_probability,
            random=self._random,
            now=self._now,
        )

    async def _delete_glossary(
        self, glossary: GlossaryManager, logger: RunLogger
    ) -> None:
        try:
            await glossary.delete()
        except StorageError as exc:
            await logger.warn(
                RunLogEvent.CONTAINER_DELETE_FAILED,
                f"Deleting container {glossary.container} failed: {exc}",
                phase=RunPhase.CLEANUP,
                data={"container": glossary.container},
            )

    async def _resolve_extensions(self) -> list[str]:
        configured = self._config.allowed_extensions
        if configured is not None:
            return configured
        formats = await self._translation.get_document_formats()
        return sorted(extensions_from_formats(formats))

    async def _resolve_glossary_formats(self, run: TranslationRun) -> dict[str, str]:
        if not run.glossary_files:
            return dict(DEFAULT_GLOSSARY_FORMATS)
        formats = await self._translation.get_glossary_formats()
        mapping = {
            extension: document_format.format
            for document_format in formats
            for extension in extensions_from_formats([document_format])
        }
        return mapping or dict(DEFAULT_GLOSSARY_FORMATS)

    async def _validate_target_language(self, language: str) -> None:
        configured = self._config.supported_languages
        if configured is not None:
            supported = {code.lower() for code in configured}
        else:
            languages = await self._translation.get_languages()
            supported = {info.code.lower() for info in languages}
        if language.strip().lower() not in supported:
            raise ArgumentError(
                "Invalid 'to' language", argument="target_language", provided=language
            )

    async def _emit_status(
        self,
        run: TranslationRun,
        logger: RunLogger,
        snapshot: JobStatusSnapshot,
        *,
        final: bool,
    ) -> None:
        await self._emit_event(
            StatusUpdatedEvent(
                run_id=run.run_id,
                timestamp=logger.timestamp(),
                status=snapshot,
                final=final,
            )
        )

    async def _emit_event(self, event: RunEvent) -> None:
        if self._event_sink is None:
            return
        await self._event_sink.emit_event(event)

    async def _phase_started(
        self, logger: RunLogger, phase: RunPhase, label: str
    ) -> None:
        await logger.info(RunLogEvent.PHASE_STARTED, f"START - {label}", phase=phase)


def default_target_folder(first_file: str, target_language: str) -> str:
    """Return the default output directory for a run.

    The directory sits next to the first accepted file's folder and is named
    after it plus the target language, e.g. ``/docs`` -> ``/docs.de``.

    Returns:
        str: Output directory path.
    """
    parent = Path(first_file).absolute().parent
    return f"{parent}.{target_language}"


def _error_response(exc: Exception) -> ErrorResponse:
    if isinstance(exc, (OrchestrationError, StorageError)):
        return exc.info.to_error_response()
    if isinstance(exc, TranslationServiceError):
        return exc.error.to_error_response()
    return ErrorResponse(code="runtime_error", message=str(exc) or type(exc).__name__)
