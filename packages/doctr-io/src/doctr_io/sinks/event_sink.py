"""Event sink adapters for run notifications."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

from doctr_core.ports.orchestrator import RunEventSinkProtocol
from doctr_schemas.events import RunEvent


class FileEventSink(RunEventSinkProtocol):
    """Event sink that appends JSONL events to a file."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the event sink with a file path."""
        self._path = Path(path)

    async def emit_event(self, event: RunEvent) -> None:
        """Append a run event to the JSONL file."""
        payload = event.model_dump_json(exclude_none=True)
        await asyncio.to_thread(_append_line, self._path, payload)


class InMemoryEventSink(RunEventSinkProtocol):
    """Event sink that stores events in memory."""

    def __init__(self) -> None:
        """Initialize the in-memory event sink."""
        self._events: list[RunEvent] = []

    @property
    def events(self) -> list[RunEvent]:
        """Return a copy of stored events."""
        return list(self._events)

    def kinds(self) -> list[str]:
        """Return the kinds of the stored events in emission order."""
        return [event.kind for event in self._events]

    async def emit_event(self, event: RunEvent) -> None:
        """Store a run event in memory."""
        self._events.append(event)


class CompositeEventSink(RunEventSinkProtocol):
    """Event sink that forwards events to multiple sinks."""

    def __init__(self, sinks: Iterable[RunEventSinkProtocol]) -> None:
        """Initialize the composite event sink."""
        self._sinks = list(sinks)

    async def emit_event(self, event: RunEvent) -> None:
        """Forward run events to each sink."""
        for sink in self._sinks:
            await sink.emit_event(event)


def _append_line(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(payload + "\n")
