"""Azure Blob Storage backend for staging run documents."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime
from types import TracebackType

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import (
    BlobSasPermissions,
    ContainerSasPermissions,
    generate_blob_sas,
    generate_container_sas,
)
from azure.storage.blob.aio import BlobServiceClient

from doctr_core.ports.storage import (
    StorageBackendProtocol,
    StorageError,
    StorageErrorCode,
    StorageErrorDetails,
    StorageErrorInfo,
)
from doctr_schemas.primitives import AccessLevel
from doctr_schemas.storage import BlobInfo, ContainerInfo


def parse_connection_string(connection_string: str) -> dict[str, str]:
    """Split a storage connection string into its key/value settings.

    Returns:
        dict[str, str]: Settings such as ``AccountName`` and ``AccountKey``.
    """
    settings: dict[str, str] = {}
    for part in connection_string.split(";"):
        key, separator, value = part.partition("=")
        if separator and key.strip():
            settings[key.strip()] = value.strip()
    return settings


class AzureBlobStorageBackend(StorageBackendProtocol):
    """Storage backend over an Azure storage account.

    Time-limited URLs are shared access signatures signed with the account
    key from the connection string.
    """

    def __init__(
        self,
        connection_string: str,
        *,
        client: BlobServiceClient | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            connection_string: Storage account connection string.
            client: Preconfigured async service client.
        """
        settings = parse_connection_string(connection_string)
        self._client = client or BlobServiceClient.from_connection_string(
            connection_string
        )
        self._account_name = settings.get("AccountName") or self._client.account_name
        self._account_key = settings.get("AccountKey")

    async def __aenter__(self) -> AzureBlobStorageBackend:
        """Enter the backend context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Close the underlying client."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying service client."""
        await self._client.close()

    async def create_container_if_absent(self, name: str) -> None:
        """Create a container, doing nothing if it already exists.

        Raises:
            StorageError: If the container cannot be created.
        """
        try:
            await self._client.create_container(name)
        except ResourceExistsError:
            return
        except AzureError as exc:
            raise _storage_error(exc, "create_container", container=name) from exc

    async def upload_object(self, container: str, name: str, data: bytes) -> None:
        """Upload a blob, overwriting any blob of the same name.

        Raises:
            StorageError: If the upload fails.
        """
        blob = self._client.get_blob_client(container=container, blob=name)
        try:
            await blob.upload_blob(data, overwrite=True)
        except AzureError as exc:
            raise _storage_error(
                exc, "upload_blob", container=container, blob=name
            ) from exc

    async def list_objects(self, container: str) -> AsyncIterator[BlobInfo]:
        """Stream the blobs of a container.

        Yields:
            BlobInfo: Name and size of each blob.

        Raises:
            StorageError: If the listing fails.
        """
        client = self._client.get_container_client(container)
        try:
            async for blob in client.list_blobs():
                yield BlobInfo(name=blob.name, size=blob.size or 0)
        except AzureError as exc:
            raise _storage_error(exc, "list_blobs", container=container) from exc

    async def download_object(self, container: str, name: str) -> bytes:
        """Download a whole blob.

        Raises:
            StorageError: If the download fails.
        """
        blob = self._client.get_blob_client(container=container, blob=name)
        try:
            downloader = await blob.download_blob()
            return await downloader.readall()
        except AzureError as exc:
            raise _storage_error(
                exc, "download_blob", container=container, blob=name
            ) from exc

    async def delete_container(self, name: str) -> None:
        """Delete a container and its blobs.

        Raises:
            StorageError: If the container cannot be deleted.
        """
        try:
            await self._client.delete_container(name)
        except AzureError as exc:
            raise _storage_error(exc, "delete_container", container=name) from exc

    async def list_containers(self, name_prefix: str) -> AsyncIterator[ContainerInfo]:
        """Stream containers whose name starts with a prefix.

        Yields:
            ContainerInfo: Name and last modification time of each container.

        Raises:
            StorageError: If the listing fails.
        """
        try:
            async for container in self._client.list_containers(
                name_starts_with=name_prefix
            ):
                yield ContainerInfo(
                    name=container.name, last_modified=container.last_modified
                )
        except AzureError as exc:
            raise _storage_error(exc, "list_containers") from exc

    def generate_container_url(
        self, container: str, access: AccessLevel, expiry: datetime
    ) -> str:
        """Return a container URL carrying a shared access signature.

        Raises:
            StorageError: If the connection string has no account key.
        """
        if access == AccessLevel.READ:
            permission = ContainerSasPermissions(read=True, list=True)
        else:
            permission = ContainerSasPermissions(
                read=True, add=True, create=True, write=True, delete=True, list=True
            )
        sas = generate_container_sas(
            account_name=self._account_name,
            container_name=container,
            account_key=self._require_account_key(container),
            permission=permission,
            expiry=expiry,
        )
        return f"{self._base_url()}/{container}?{sas}"

    def generate_object_url(
        self, container: str, name: str, access: AccessLevel, expiry: datetime
    ) -> str:
        """Return a blob URL carrying a shared access signature.

        Raises:
            StorageError: If the connection string has no account key.
        """
        if access == AccessLevel.READ:
            permission = BlobSasPermissions(read=True)
        else:
            permission = BlobSasPermissions(
                read=True, add=True, create=True, write=True, delete=True
            )
        sas = generate_blob_sas(
            account_name=self._account_name,
            container_name=container,
            blob_name=name,
            account_key=self._require_account_key(container),
            permission=permission,
            expiry=expiry,
        )
        return f"{self._base_url()}/{container}/{name}?{sas}"

    def _base_url(self) -> str:
        return self._client.primary_endpoint.rstrip("/")

    def _require_account_key(self, container: str) -> str:
        if self._account_key:
            return self._account_key
        raise StorageError(
            StorageErrorInfo(
                code=StorageErrorCode.AUTH_ERROR,
                message="Connection string has no AccountKey to sign URLs with",
                details=StorageErrorDetails(
                    operation="generate_sas", container=container
                ),
            )
        )


def _storage_error(
    exc: AzureError,
    operation: str,
    *,
    container: str | None = None,
    blob: str | None = None,
) -> StorageError:
    if isinstance(exc, ResourceNotFoundError):
        code = StorageErrorCode.NOT_FOUND
    elif isinstance(exc, ResourceExistsError):
        code = StorageErrorCode.CONFLICT
    elif isinstance(exc, ClientAuthenticationError):
        code = StorageErrorCode.AUTH_ERROR
    else:
        code = StorageErrorCode.IO_ERROR
    target = f"{container}/{blob}" if blob else container or "storage account"
    return StorageError(
        StorageErrorInfo(
            code=code,
            message=f"Storage {operation} failed for {target}: {exc.message or exc}",
            details=StorageErrorDetails(
                operation=operation,
                container=container,
                blob=blob,
                reason=type(exc).__name__,
            ),
        )
    )
