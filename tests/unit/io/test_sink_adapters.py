"""Unit tests for log and event sink adapters."""

from __future__ import annotations

import io
import json
from pathlib import Path
from uuid import UUID

import pytest

from doctr_core.ports.orchestrator import LogSinkProtocol
from doctr_io import (
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
from doctr_schemas.config import LoggingConfig, LogSinkConfig
from doctr_schemas.events import FilesDiscardedEvent, UploadCompletedEvent
from doctr_schemas.logs import LogEntry
from doctr_schemas.primitives import LogLevel, LogSinkType, RunId
from doctr_schemas.redaction import Redactor

RUN_ID: RunId = UUID("01890a5c-91c8-7b2a-9f51-9b40d0cfb700")


def _entry(
    level: LogLevel = LogLevel.INFO,
    message: str = "Run started",
    data: dict | None = None,
) -> LogEntry:
    return LogEntry(
        timestamp="2026-01-26T12:00:00Z",
        level=level,
        event="run_started",
        run_id=RUN_ID,
        message=message,
        data=data,
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_console_log_sink_drops_entries_below_min_level() -> None:
    """Only entries at or above the minimum level are written."""
    stream = io.StringIO()
    sink = ConsoleLogSink(stream=stream, min_level=LogLevel.INFO)

    await sink.emit_log(_entry(LogLevel.DEBUG, "hidden"))
    await sink.emit_log(_entry(LogLevel.WARN, "shown"))

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["message"] == "shown"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_file_log_sink_appends_jsonl(tmp_path: Path) -> None:
    """Entries are appended as JSON lines, creating parent folders."""
    path = tmp_path / "logs" / "run.jsonl"
    sink = FileLogSink(path)

    await sink.emit_log(_entry(message="one"))
    await sink.emit_log(_entry(message="two"))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["one", "two"]
    assert "phase" not in json.loads(lines[0])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_redacting_log_sink_masks_message_and_nested_data() -> None:
    """SAS signatures and literal keys never reach the delegate."""
    delegate = InMemoryLogSink()
    sink = RedactingLogSink(delegate, Redactor(literal_values=["translator-key"]))

    await sink.emit_log(
        _entry(
            message="GET https://acct.blob.core.windows.net/c?sv=1&sig=abc%2F123",
            data={
                "request": {"sourceUrl": "https://x/c?sp=r&sig=zzz"},
                "headers": ["key translator-key"],
                "count": 2,
            },
        )
    )

    entry = delegate.entries[0]
    assert entry.message == (
        "GET https://acct.blob.core.windows.net/c?sv=1&sig=[REDACTED]"
    )
    assert entry.data == {
        "request": {"sourceUrl": "https://x/c?sp=r&sig=[REDACTED]"},
        "headers": ["key [REDACTED]"],
        "count": 2,
    }


@pytest.mark.unit
def test_build_log_sink_wraps_each_sink_with_redaction(tmp_path: Path) -> None:
    """Multiple sinks are composed and every one is redacted."""
    config = LoggingConfig(
        sinks=[
            LogSinkConfig(type=LogSinkType.CONSOLE),
            LogSinkConfig(type=LogSinkType.FILE, path=str(tmp_path / "log.jsonl")),
        ]
    )

    sink = build_log_sink(config, redactor=Redactor())

    assert isinstance(sink, CompositeLogSink)
    assert isinstance(sink, LogSinkProtocol)


@pytest.mark.unit
def test_build_log_sink_returns_single_sink_unwrapped() -> None:
    """A single configured sink is returned directly."""
    assert isinstance(build_log_sink(LoggingConfig()), NoopLogSink)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_console_sink_from_config_honors_min_level() -> None:
    """The console level passed to the builder applies to console sinks."""
    stream = io.StringIO()
    config = LoggingConfig(sinks=[LogSinkConfig(type=LogSinkType.CONSOLE)])
    sink = build_log_sink(config, stream=stream, min_console_level=LogLevel.WARN)

    await sink.emit_log(_entry(LogLevel.INFO))

    assert stream.getvalue() == ""


@pytest.mark.unit
@pytest.mark.asyncio
async def test_event_sinks_fan_out_and_persist(tmp_path: Path) -> None:
    """Composite event sinks forward to memory and JSONL files."""
    memory = InMemoryEventSink()
    path = tmp_path / "events.jsonl"
    sink = CompositeEventSink([memory, FileEventSink(path)])
    discarded = FilesDiscardedEvent(
        run_id=RUN_ID, timestamp="2026-01-26T12:00:00Z", paths=["a.xyz"]
    )
    uploaded = UploadCompletedEvent(
        run_id=RUN_ID, timestamp="2026-01-26T12:00:01Z", count=2, total_bytes=11
    )

    await sink.emit_event(discarded)
    await sink.emit_event(uploaded)

    assert memory.kinds() == ["files_discarded", "upload_completed"]
    records = [json.loads(line) for line in path.read_text().splitlines()]
    assert records[0]["paths"] == ["a.xyz"]
    assert records[1]["total_bytes"] == 11
