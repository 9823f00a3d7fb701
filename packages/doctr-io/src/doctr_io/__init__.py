"""doctr-io: Storage, translation service and sink adapters."""

from doctr_io.sinks import (
    CompositeEventSink,
    CompositeLogSink,
    ConsoleLogSink,
    FileEventSink,
    FileLogSink,
    InMemoryEventSink,
    InMemoryLogSink,
    NoopLogSink,
    RedactingLogSink,
    build_log_sink,
)
from doctr_io.storage import (
    AzureBlobStorageBackend,
    InMemoryStorageBackend,
    parse_connection_string,
)
from doctr_io.translation import (
    DocumentTranslationClient,
    InMemoryTranslationBackend,
)

__all__ = [
    "AzureBlobStorageBackend",
    "CompositeEventSink",
    "CompositeLogSink",
    "ConsoleLogSink",
    "DocumentTranslationClient",
    "FileEventSink",
    "FileLogSink",
    "InMemoryEventSink",
    "InMemoryLogSink",
    "InMemoryStorageBackend",
    "InMemoryTranslationBackend",
    "NoopLogSink",
    "RedactingLogSink",
    "build_log_sink",
    "parse_connection_string",
]
