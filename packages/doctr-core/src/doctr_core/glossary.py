"""Staging of glossary files for a translation job."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

from doctr_core.ports.orchestrator import ArgumentError
from doctr_core.ports.storage import (
    StorageBackendProtocol,
    StorageError,
    StorageErrorCode,
    StorageErrorDetails,
    StorageErrorInfo,
)
from doctr_core.run_log import RunLogger
from doctr_schemas.events import RunLogEvent
from doctr_schemas.jobs import GlossaryDescriptor
from doctr_schemas.primitives import AccessLevel, RunPhase
from doctr_schemas.storage import SourceFile

DEFAULT_GLOSSARY_FORMATS: dict[str, str] = {
    ".csv": "CSV",
    ".tsv": "TSV",
    ".tab": "TSV",
    ".tmx": "TMX",
    ".xlf": "XLIFF",
    ".xliff": "XLIFF",
}


def resolve_glossary_format(
    path: str, formats: Mapping[str, str] = DEFAULT_GLOSSARY_FORMATS
) -> str:
    """Return the service format name of a glossary file.

    Raises:
        ArgumentError: If the extension is not a known glossary format.
    """
    extension = Path(path).suffix.lower()
    try:
        return formats[extension]
    except KeyError:
        raise ArgumentError(
            f"Unsupported glossary format: {extension or path}",
            argument="glossary_files",
            provided=path,
        ) from None


class GlossaryManager:
    """Upload glossary files to the run's glossary container and describe them.

    Descriptors are keyed by storage name: a later file with the same base
    name replaces the earlier descriptor, matching the overwritten blob.
    """

    def __init__(
        self,
        storage: StorageBackendProtocol,
        container: str,
        *,
        url_expiry: timedelta = timedelta(hours=5),
        formats: Mapping[str, str] = DEFAULT_GLOSSARY_FORMATS,
        logger: RunLogger | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """Initialize the glossary manager.

        Args:
            storage: Storage backend holding the glossary container.
            container: Glossary container name.
            url_expiry: Lifetime of generated glossary URLs.
            formats: Extension to service format mapping.
            logger: Optional run logger.
            now: Current time provider.
        """
        self._storage = storage
        self.container = container
        self._url_expiry = url_expiry
        self._formats = formats
        self._logger = logger
        self._now = now
        self.glossaries: dict[str, GlossaryDescriptor] = {}

    def validate(self, files: Sequence[str]) -> None:
        """Check every glossary file has a known format.

        Raises:
            ArgumentError: If a glossary file has an unsupported extension.
        """
        for path in files:
            resolve_glossary_format(path, self._formats)

    async def upload(self, files: Sequence[str]) -> list[GlossaryDescriptor]:
        """Upload glossary files and build their descriptors.

        Args:
            files: Local glossary file paths.

        Returns:
            list[GlossaryDescriptor]: One descriptor per distinct storage name.

        Raises:
            ArgumentError: If a glossary file has an unsupported extension.
            StorageError: If a glossary file cannot be read or uploaded.
        """
        if not files:
            return []
        expiry = self._now() + self._url_expiry
        for path in files:
            source = SourceFile.from_path(path)
            glossary_format = resolve_glossary_format(path, self._formats)
            try:
                data = await asyncio.to_thread(Path(path).read_bytes)
            except OSError as exc:
                raise StorageError(_read_error_info(path, exc)) from exc
            await self._storage.upload_object(self.container, source.name, data)
            url = self._storage.generate_object_url(
                self.container, source.name, AccessLevel.READ, expiry
            )
            self.glossaries[source.name] = GlossaryDescriptor(
                glossary_url=url, format=glossary_format
            )
            if self._logger is not None:
                await self._logger.debug(
                    RunLogEvent.TRANSFER_COMPLETED,
                    f"Glossary {path} uploaded",
                    phase=RunPhase.UPLOAD,
                    data={"name": source.name, "format": glossary_format},
                )
        return list(self.glossaries.values())

    async def delete(self) -> None:
        """Delete the glossary container.

        Raises:
            StorageError: If the container cannot be deleted.
        """
        await self._storage.delete_container(self.container)


def _read_error_info(path: str, exc: OSError) -> StorageErrorInfo:
    return StorageErrorInfo(
        code=StorageErrorCode.IO_ERROR,
        message=f"Cannot read glossary file {path}: {exc}",
        details=StorageErrorDetails(operation="read_glossary", reason=str(exc)),
    )
