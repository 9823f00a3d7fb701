"""Log and event sink adapters."""

from doctr_io.sinks.event_sink import (
    CompositeEventSink,
    FileEventSink,
    InMemoryEventSink,
)
from doctr_io.sinks.log_sink import (
    CompositeLogSink,
    ConsoleLogSink,
    FileLogSink,
    InMemoryLogSink,
    NoopLogSink,
    RedactingLogSink,
    build_log_sink,
)

__all__ = [
    "CompositeEventSink",
    "CompositeLogSink",
    "ConsoleLogSink",
    "FileEventSink",
    "FileLogSink",
    "InMemoryEventSink",
    "InMemoryLogSink",
    "NoopLogSink",
    "RedactingLogSink",
    "build_log_sink",
]
