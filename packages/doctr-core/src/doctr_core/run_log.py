"""Per-run structured logging bound to a run identifier and start time."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

from doctr_core.ports.orchestrator import LogSinkProtocol
from doctr_schemas.logs import LogEntry
from doctr_schemas.primitives import JsonValue, LogLevel, RunId, RunPhase, Timestamp


def now_timestamp() -> Timestamp:
    """Return the current UTC time as an ISO-8601 timestamp."""
    return datetime.now(UTC).isoformat()


class RunLogger:
    """Emit log entries for one run to a log sink.

    Every entry carries the run id and the seconds elapsed since the logger
    was created, so concurrent runs never share logging state.
    """

    def __init__(
        self,
        run_id: RunId,
        sink: LogSinkProtocol | None,
        *,
        clock: Callable[[], Timestamp] = now_timestamp,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the run logger.

        Args:
            run_id: Run identifier stamped on every entry.
            sink: Destination sink; entries are dropped when None.
            clock: Timestamp provider.
            monotonic: Monotonic time source used for elapsed seconds.
        """
        self.run_id = run_id
        self._sink = sink
        self._clock = clock
        self._monotonic = monotonic
        self._started = monotonic()

    @property
    def elapsed_s(self) -> float:
        """Return the seconds elapsed since the run started."""
        return max(self._monotonic() - self._started, 0.0)

    def timestamp(self) -> Timestamp:
        """Return the current timestamp from the configured clock."""
        return self._clock()

    async def emit(self, entry: LogEntry) -> None:
        """Forward a prebuilt entry to the sink."""
        if self._sink is None:
            return
        await self._sink.emit_log(entry)

    async def log(
        self,
        level: LogLevel,
        event: str,
        message: str,
        *,
        phase: RunPhase | None = None,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Build and emit a log entry.

        Args:
            level: Log level.
            event: Event name.
            message: Human-readable message.
            phase: Run phase, if applicable.
            data: Structured event data.
        """
        if self._sink is None:
            return
        entry = LogEntry(
            timestamp=self._clock(),
            level=level,
            event=event,
            run_id=self.run_id,
            phase=phase,
            elapsed_s=self.elapsed_s,
            message=message,
            data=data,
        )
        await self._sink.emit_log(entry)

    async def debug(
        self,
        event: str,
        message: str,
        *,
        phase: RunPhase | None = None,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Emit a debug entry."""
        await self.log(LogLevel.DEBUG, event, message, phase=phase, data=data)

    async def info(
        self,
        event: str,
        message: str,
        *,
        phase: RunPhase | None = None,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Emit an info entry."""
        await self.log(LogLevel.INFO, event, message, phase=phase, data=data)

    async def warn(
        self,
        event: str,
        message: str,
        *,
        phase: RunPhase | None = None,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Emit a warning entry."""
        await self.log(LogLevel.WARN, event, message, phase=phase, data=data)

    async def error(
        self,
        event: str,
        message: str,
        *,
        phase: RunPhase | None = None,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        """Emit an error entry."""
        await self.log(LogLevel.ERROR, event, message, phase=phase, data=data)
