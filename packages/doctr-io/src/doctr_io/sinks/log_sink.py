"""Log sink adapters for run log entries."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from doctr_core.ports.orchestrator import LogSinkProtocol
from doctr_schemas.config import LoggingConfig
from doctr_schemas.logs import LogEntry
from doctr_schemas.primitives import LogLevel, LogSinkType
from doctr_schemas.redaction import Redactor

_LEVEL_ORDER = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}


class CompositeLogSink(LogSinkProtocol):
    """Log sink that forwards entries to multiple sinks."""

    def __init__(self, sinks: Iterable[LogSinkProtocol]) -> None:
        """Initialize the composite log sink."""
        self._sinks = list(sinks)

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward log entries to each sink."""
        for sink in self._sinks:
            await sink.emit_log(entry)


class ConsoleLogSink(LogSinkProtocol):
    """Log sink that writes JSONL entries to stderr."""

    def __init__(
        self, stream: TextIO | None = None, *, min_level: LogLevel = LogLevel.DEBUG
    ) -> None:
        """Initialize the console log sink.

        Args:
            stream: Output stream to write JSONL log entries.
            min_level: Entries below this level are dropped.
        """
        self._stream = stream or sys.stderr
        self._min_level = min_level

    async def emit_log(self, entry: LogEntry) -> None:
        """Write log entry JSONL to the output stream."""
        if _LEVEL_ORDER[LogLevel(entry.level)] < _LEVEL_ORDER[self._min_level]:
            return
        payload = entry.model_dump_json(exclude_none=False)
        self._stream.write(payload + "\n")
        self._stream.flush()


class FileLogSink(LogSinkProtocol):
    """Log sink that appends JSONL entries to a file."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the file log sink with a JSONL path."""
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        """Return the JSONL file path."""
        return self._path

    async def emit_log(self, entry: LogEntry) -> None:
        """Append a log entry to the JSONL file."""
        payload = entry.model_dump_json(exclude_none=True)
        async with self._lock:
            await asyncio.to_thread(_append_line, self._path, payload)


class InMemoryLogSink(LogSinkProtocol):
    """Log sink that keeps entries in memory."""

    def __init__(self) -> None:
        """Initialize the in-memory log sink."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return a copy of stored log entries."""
        return list(self._entries)

    async def emit_log(self, entry: LogEntry) -> None:
        """Store a log entry in memory."""
        self._entries.append(entry)


class NoopLogSink(LogSinkProtocol):
    """Log sink that drops all log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Ignore log entries."""
        return None


class RedactingLogSink(LogSinkProtocol):
    """Log sink wrapper that masks credentials before forwarding entries."""

    def __init__(self, delegate: LogSinkProtocol, redactor: Redactor) -> None:
        """Initialize the redacting log sink.

        Args:
            delegate: Underlying sink to forward redacted entries to.
            redactor: Redactor applied to the message and data.
        """
        self._delegate = delegate
        self._redactor = redactor

    async def emit_log(self, entry: LogEntry) -> None:
        """Redact secrets from the entry before forwarding it."""
        data = self._redactor.redact_dict(entry.data) if entry.data else entry.data
        redacted = entry.model_copy(
            update={"message": self._redactor.redact(entry.message), "data": data}
        )
        await self._delegate.emit_log(redacted)


def build_log_sink(
    logging_config: LoggingConfig,
    *,
    stream: TextIO | None = None,
    redactor: Redactor | None = None,
    min_console_level: LogLevel = LogLevel.DEBUG,
) -> LogSinkProtocol:
    """Build a log sink from configuration.

    Args:
        logging_config: Logging configuration for the run.
        stream: Optional stream for console logging.
        redactor: Optional redactor applied before writing logs.
        min_console_level: Lowest level written by console sinks.

    Returns:
        LogSinkProtocol: Configured log sink.

    Raises:
        ValueError: If an unsupported log sink type is configured.
    """
    sinks: list[LogSinkProtocol] = []
    for sink_config in logging_config.sinks:
        if sink_config.type == LogSinkType.FILE:
            sinks.append(FileLogSink(str(sink_config.path)))
        elif sink_config.type == LogSinkType.CONSOLE:
            sinks.append(ConsoleLogSink(stream=stream, min_level=min_console_level))
        elif sink_config.type == LogSinkType.NOOP:
            sinks.append(NoopLogSink())
        else:
            raise ValueError(f"Unsupported log sink type: {sink_config.type}")

    if redactor is not None:
        sinks = [RedactingLogSink(sink, redactor) for sink in sinks]

    if len(sinks) == 1:
        return sinks[0]
    return CompositeLogSink(sinks)


def _append_line(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(payload + "\n")
