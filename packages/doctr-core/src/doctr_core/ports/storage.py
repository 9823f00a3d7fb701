"""Protocol definitions and errors for the blob storage backend."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from doctr_schemas.base import BaseSchema
from doctr_schemas.primitives import AccessLevel
from doctr_schemas.responses import ErrorDetails, ErrorResponse
from doctr_schemas.storage import BlobInfo, ContainerInfo


class StorageErrorCode(StrEnum):
    """Categorized error codes for storage operations."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    IO_ERROR = "io_error"
    AUTH_ERROR = "auth_error"


class StorageErrorDetails(BaseSchema):
    """Detailed storage error context."""

    operation: str | None = Field(None, description="Storage operation name")
    container: str | None = Field(None, description="Container name")
    blob: str | None = Field(None, description="Blob name")
    reason: str | None = Field(None, description="Additional error context")


class StorageErrorInfo(BaseSchema):
    """Structured storage error data."""

    code: StorageErrorCode = Field(..., description="Storage error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: StorageErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert storage error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None:
            details = ErrorDetails(
                field=self.details.operation,
                provided=self.details.blob or self.details.container,
                valid_options=None,
            )
        return ErrorResponse(code=str(self.code), message=self.message, details=details)


class StorageError(Exception):
    """Storage error with structured details."""

    def __init__(self, info: StorageErrorInfo) -> None:
        """Initialize the storage error.

        Args:
            info: Structured storage error information.
        """
        super().__init__(info.message)
        self.info = info


@runtime_checkable
class StorageBackendProtocol(Protocol):
    """Protocol for the object storage that stages run documents.

    Implementations raise StorageError for every failed operation.
    """

    async def create_container_if_absent(self, name: str) -> None:
        """Create a container, doing nothing if it already exists."""
        raise NotImplementedError

    async def upload_object(self, container: str, name: str, data: bytes) -> None:
        """Upload a blob, overwriting any existing blob of the same name."""
        raise NotImplementedError

    def list_objects(self, container: str) -> AsyncIterator[BlobInfo]:
        """Stream the blobs currently stored in a container."""
        raise NotImplementedError

    async def download_object(self, container: str, name: str) -> bytes:
        """Download the full contents of a blob."""
        raise NotImplementedError

    async def delete_container(self, name: str) -> None:
        """Delete a container and every blob in it."""
        raise NotImplementedError

    def list_containers(self, name_prefix: str) -> AsyncIterator[ContainerInfo]:
        """Stream containers whose name starts with the prefix."""
        raise NotImplementedError

    def generate_container_url(
        self, container: str, access: AccessLevel, expiry: datetime
    ) -> str:
        """Return a time-limited URL granting access to a container."""
        raise NotImplementedError

    def generate_object_url(
        self, container: str, name: str, access: AccessLevel, expiry: datetime
    ) -> str:
        """Return a time-limited URL granting access to a single blob."""
        raise NotImplementedError
