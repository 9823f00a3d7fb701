"""In-memory storage backend for tests and dry runs."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from urllib.parse import urlencode

from doctr_core.ports.storage import (
    StorageBackendProtocol,
    StorageError,
    StorageErrorCode,
    StorageErrorDetails,
    StorageErrorInfo,
)
from doctr_schemas.primitives import AccessLevel
from doctr_schemas.storage import BlobInfo, ContainerInfo

MEMORY_URL_SCHEME = "memory"


@dataclass(slots=True)
class _Container:
    last_modified: datetime
    blobs: dict[str, bytes] = field(default_factory=dict)


class InMemoryStorageBackend(StorageBackendProtocol):
    """Storage backend keeping containers and blobs in process memory.

    Every call is recorded in ``calls`` as ``(operation, target)``.
    """

    def __init__(
        self, *, now: Callable[[], datetime] = lambda: datetime.now(UTC)
    ) -> None:
        """Initialize the in-memory backend.

        Args:
            now: Clock stamping container modification times.
        """
        self._now = now
        self._containers: dict[str, _Container] = {}
        self.calls: list[tuple[str, str]] = []

    @property
    def container_names(self) -> list[str]:
        """Return the names of existing containers."""
        return sorted(self._containers)

    def add_container(
        self, name: str, *, last_modified: datetime | None = None
    ) -> None:
        """Seed a container without recording a call."""
        self._containers[name] = _Container(last_modified=last_modified or self._now())

    def blobs(self, container: str) -> dict[str, bytes]:
        """Return a copy of a container's blobs."""
        return dict(self._require(container, "blobs").blobs)

    async def create_container_if_absent(self, name: str) -> None:
        """Create a container unless it exists."""
        self.calls.append(("create_container", name))
        if name not in self._containers:
            self._containers[name] = _Container(last_modified=self._now())

    async def upload_object(self, container: str, name: str, data: bytes) -> None:
        """Store a blob, replacing any previous content.

        Raises:
            StorageError: If the container does not exist.
        """
        self.calls.append(("upload_object", f"{container}/{name}"))
        target = self._require(container, "upload_blob", blob=name)
        target.blobs[name] = bytes(data)
        target.last_modified = self._now()

    async def list_objects(self, container: str) -> AsyncIterator[BlobInfo]:
        """Stream the blobs of a container in name order.

        Yields:
            BlobInfo: Name and size of each blob.

        Raises:
            StorageError: If the container does not exist.
        """
        self.calls.append(("list_objects", container))
        blobs = dict(self._require(container, "list_blobs").blobs)
        for name in sorted(blobs):
            yield BlobInfo(name=name, size=len(blobs[name]))

    async def download_object(self, container: str, name: str) -> bytes:
        """Return a blob's content.

        Raises:
            StorageError: If the container or blob does not exist.
        """
        self.calls.append(("download_object", f"{container}/{name}"))
        blobs = self._require(container, "download_blob", blob=name).blobs
        if name not in blobs:
            raise _not_found("download_blob", container, name)
        return blobs[name]

    async def delete_container(self, name: str) -> None:
        """Delete a container.

        Raises:
            StorageError: If the container does not exist.
        """
        self.calls.append(("delete_container", name))
        self._require(name, "delete_container")
        del self._containers[name]

    async def list_containers(self, name_prefix: str) -> AsyncIterator[ContainerInfo]:
        """Stream containers whose name starts with a prefix.

        Yields:
            ContainerInfo: Name and last modification time of each container.
        """
        self.calls.append(("list_containers", name_prefix))
        snapshot = {
            name: container.last_modified
            for name, container in self._containers.items()
            if name.startswith(name_prefix)
        }
        for name in sorted(snapshot):
            yield ContainerInfo(name=name, last_modified=snapshot[name])

    def generate_container_url(
        self, container: str, access: AccessLevel, expiry: datetime
    ) -> str:
        """Return a ``memory://`` URL naming the container."""
        return f"{MEMORY_URL_SCHEME}://{container}?{_query(access, expiry)}"

    def generate_object_url(
        self, container: str, name: str, access: AccessLevel, expiry: datetime
    ) -> str:
        """Return a ``memory://`` URL naming the blob."""
        return f"{MEMORY_URL_SCHEME}://{container}/{name}?{_query(access, expiry)}"

    def _require(
        self, container: str, operation: str, *, blob: str | None = None
    ) -> _Container:
        try:
            return self._containers[container]
        except KeyError:
            raise _not_found(operation, container, blob) from None


def _query(access: AccessLevel, expiry: datetime) -> str:
    return urlencode({"sp": str(access), "se": expiry.isoformat()})


def _not_found(operation: str, container: str, blob: str | None) -> StorageError:
    target = f"{container}/{blob}" if blob else container
    return StorageError(
        StorageErrorInfo(
            code=StorageErrorCode.NOT_FOUND,
            message=f"Storage {operation} failed: {target} does not exist",
            details=StorageErrorDetails(
                operation=operation, container=container, blob=blob
            ),
        )
    )
