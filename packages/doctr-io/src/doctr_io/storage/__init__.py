"""Storage backend adapters."""

from doctr_io.storage.azure_blob import AzureBlobStorageBackend, parse_connection_string
from doctr_io.storage.memory import InMemoryStorageBackend

__all__ = [
    "AzureBlobStorageBackend",
    "InMemoryStorageBackend",
    "parse_connection_string",
]
