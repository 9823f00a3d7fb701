"""Bounded concurrent upload and download of run documents."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path

from doctr_core.ports.storage import StorageBackendProtocol, StorageError
from doctr_core.run_log import RunLogger
from doctr_schemas.events import RunLogEvent
from doctr_schemas.primitives import RunPhase
from doctr_schemas.results import TransferFailure, TransferReport
from doctr_schemas.storage import BlobInfo, SourceFile

DEFAULT_MAX_PARALLEL = 100


class _ReportBuilder:
    """Accumulates per-object outcomes until the phase barrier releases."""

    def __init__(self) -> None:
        self.total_bytes = 0
        self.transferred: list[str] = []
        self.failures: list[TransferFailure] = []

    def record_success(self, name: str, size: int) -> None:
        self.transferred.append(name)
        self.total_bytes += size

    def record_failure(self, name: str, path: str | None, exc: Exception) -> None:
        self.failures.append(
            TransferFailure(name=name, path=path, error=str(exc) or type(exc).__name__)
        )

    def build(self) -> TransferReport:
        return TransferReport(
            count=len(self.transferred),
            total_bytes=self.total_bytes,
            transferred=list(self.transferred),
            failures=list(self.failures),
        )


class _AdmissionGate:
    """Counting limiter for in-flight transfers.

    A slot is held for the whole transfer, so ``in_flight`` never exceeds
    ``limit``.
    """

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("max_parallel must be positive")
        self.limit = limit
        self.in_flight = 0
        self.peak = 0
        self._semaphore = asyncio.Semaphore(limit)

    async def run(self, operation: Callable[[], Awaitable[None]]) -> None:
        async with self._semaphore:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            try:
                await operation()
            finally:
                self.in_flight -= 1


async def _fan_out[ItemT](
    items: Iterable[ItemT],
    worker: Callable[[ItemT], Awaitable[None]],
    gate: _AdmissionGate,
) -> None:
    async with asyncio.TaskGroup() as group:
        for item in items:
            group.create_task(gate.run(lambda item=item: worker(item)))


class UploadManager:
    """Upload local files into a container with a bounded worker pool."""

    def __init__(
        self,
        storage: StorageBackendProtocol,
        *,
        max_parallel: int = DEFAULT_MAX_PARALLEL,
        logger: RunLogger | None = None,
    ) -> None:
        """Initialize the upload manager.

        Args:
            storage: Storage backend receiving the files.
            max_parallel: Maximum number of in-flight uploads.
            logger: Optional run logger.

        Raises:
            ValueError: If max_parallel is not positive.
        """
        if max_parallel <= 0:
            raise ValueError("max_parallel must be positive")
        self._storage = storage
        self._max_parallel = max_parallel
        self._logger = logger
        self.peak_in_flight = 0

    async def upload(
        self, container: str, files: Iterable[SourceFile]
    ) -> TransferReport:
        """Upload every file under its flattened storage name.

        A file that cannot be read or uploaded is recorded as a failure and
        does not abort the batch; it is not retried.

        Args:
            container: Destination container name.
            files: Files to upload.

        Returns:
            TransferReport: Count and bytes of successful uploads plus failures.
        """
        report = _ReportBuilder()
        gate = _AdmissionGate(self._max_parallel)

        async def _upload(source: SourceFile) -> None:
            try:
                data = await asyncio.to_thread(Path(source.path).read_bytes)
                await self._storage.upload_object(container, source.name, data)
            except (StorageError, OSError) as exc:
                report.record_failure(source.name, source.path, exc)
                await self._log_failure(source.name, exc)
                return
            report.record_success(source.name, len(data))
            if self._logger is not None:
                await self._logger.debug(
                    RunLogEvent.TRANSFER_COMPLETED,
                    f"File {source.path} uploaded",
                    phase=RunPhase.UPLOAD,
                    data={"name": source.name, "bytes": len(data)},
                )

        await _fan_out(files, _upload, gate)
        self.peak_in_flight = gate.peak
        return report.build()

    async def _log_failure(self, name: str, exc: Exception) -> None:
        if self._logger is None:
            return
        await self._logger.warn(
            RunLogEvent.TRANSFER_FAILED,
            f"Uploading file {name} failed with {exc}",
            phase=RunPhase.UPLOAD,
            data={"name": name},
        )


class DownloadManager:
    """Download every blob of a container with a bounded worker pool."""

    def __init__(
        self,
        storage: StorageBackendProtocol,
        *,
        max_parallel: int = DEFAULT_MAX_PARALLEL,
        logger: RunLogger | None = None,
    ) -> None:
        """Initialize the download manager.

        Args:
            storage: Storage backend holding the translated documents.
            max_parallel: Maximum number of in-flight downloads.
            logger: Optional run logger.

        Raises:
            ValueError: If max_parallel is not positive.
        """
        if max_parallel <= 0:
            raise ValueError("max_parallel must be positive")
        self._storage = storage
        self._max_parallel = max_parallel
        self._logger = logger
        self.peak_in_flight = 0

    async def download(self, container: str, destination: str | Path) -> TransferReport:
        """Download every listed blob into a local directory.

        The directory is created if absent. A blob that cannot be fetched or
        written, or whose name resolves outside the directory, is recorded as
        a failure and does not abort the batch.

        Args:
            container: Source container name.
            destination: Local output directory.

        Returns:
            TransferReport: Count and bytes of successful downloads plus failures.
        """
        directory = Path(destination)
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
        root = await asyncio.to_thread(directory.resolve)
        report = _ReportBuilder()
        gate = _AdmissionGate(self._max_parallel)

        async def _download(blob: BlobInfo) -> None:
            target = directory / blob.name
            try:
                _check_inside(root, target)
                data = await self._storage.download_object(container, blob.name)
                await asyncio.to_thread(_write_file, target, data)
            except (StorageError, OSError, ValueError) as exc:
                report.record_failure(blob.name, str(target), exc)
                if self._logger is not None:
                    await self._logger.warn(
                        RunLogEvent.TRANSFER_FAILED,
                        f"Downloading {blob.name} failed with {exc}",
                        phase=RunPhase.DOWNLOAD,
                        data={"name": blob.name},
                    )
                return
            report.record_success(blob.name, len(data))
            if self._logger is not None:
                await self._logger.debug(
                    RunLogEvent.TRANSFER_COMPLETED,
                    f"Downloaded: {target}",
                    phase=RunPhase.DOWNLOAD,
                    data={"name": blob.name, "bytes": len(data)},
                )

        blobs = [blob async for blob in self._storage.list_objects(container)]
        await _fan_out(blobs, _download, gate)
        self.peak_in_flight = gate.peak
        return report.build()


def _check_inside(root: Path, target: Path) -> None:
    if not target.resolve().is_relative_to(root):
        raise ValueError(f"Blob name escapes the output directory: {target}")


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
