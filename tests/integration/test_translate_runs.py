"""End-to-end translation runs against the in-memory backends."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from doctr_core.orchestrator import RunOrchestrator
from doctr_core.ports.orchestrator import ArgumentError, SubmissionError
from doctr_io import InMemoryEventSink, InMemoryLogSink, InMemoryStorageBackend
from doctr_schemas.config import CleanupConfig, PollingConfig, RunConfig
from doctr_schemas.events import (
    DownloadCompletedEvent,
    FilesDiscardedEvent,
    RunLogEvent,
    StatusUpdatedEvent,
    UploadCompletedEvent,
)
from doctr_schemas.primitives import AccessLevel, JobState
from tests.helpers.fakes import RecordingSleep, simulated_service


class _UnreachableUrlStorage(InMemoryStorageBackend):
    """Storage handing out URLs the simulated service cannot open."""

    def generate_container_url(
        self, container: str, access: AccessLevel, expiry: datetime
    ) -> str:
        return f"https://unreachable.test/{container}"


def _config(**overrides: object) -> RunConfig:
    return RunConfig(
        polling=PollingConfig(interval_s=0.001),
        cleanup=CleanupConfig(sweep_probability=0.0),
        **overrides,
    )


def _orchestrator(
    storage: InMemoryStorageBackend,
    config: RunConfig,
    *,
    event_sink: InMemoryEventSink | None = None,
    log_sink: InMemoryLogSink | None = None,
) -> RunOrchestrator:
    return RunOrchestrator(
        storage,
        simulated_service(storage),
        config,
        event_sink=event_sink,
        log_sink=log_sink,
        sleep=RecordingSleep(),
    )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_filters_uploads_translates_and_downloads(tmp_path: Path) -> None:
    """Only allowed documents travel through the whole pipeline."""
    inputs = tmp_path / "in"
    inputs.mkdir()
    report = inputs / "report.docx"
    notes = inputs / "notes.txt"
    summary = inputs / "summary.docx"
    report.write_bytes(b"quarterly report")
    notes.write_bytes(b"meeting notes")
    summary.write_bytes(b"summary")
    storage = InMemoryStorageBackend()
    events = InMemoryEventSink()
    orchestrator = _orchestrator(
        storage, _config(allowed_extensions=[".docx"]), event_sink=events
    )
    output = tmp_path / "out"
    run = orchestrator.create_run(
        [str(report), str(notes), str(summary)], "de", target_folder=str(output)
    )

    result = await orchestrator.run(run)

    assert [source.path for source in run.accepted] == [str(report), str(summary)]
    assert result.discarded == [str(notes)]
    assert result.state == JobState.SUCCEEDED

    kinds = events.kinds()
    assert kinds[0] == "files_discarded"
    assert kinds[1] == "upload_completed"
    assert kinds[-1] == "download_completed"
    assert set(kinds[2:-1]) == {"status_updated"}

    discarded_event = events.events[0]
    assert isinstance(discarded_event, FilesDiscardedEvent)
    assert discarded_event.paths == [str(notes)]
    upload_event = events.events[1]
    assert isinstance(upload_event, UploadCompletedEvent)
    assert upload_event.count == 2
    assert upload_event.total_bytes == len(b"quarterly report") + len(b"summary")
    final_status = events.events[-2]
    assert isinstance(final_status, StatusUpdatedEvent)
    assert final_status.final is True
    assert final_status.status.status == "Succeeded"
    download_event = events.events[-1]
    assert isinstance(download_event, DownloadCompletedEvent)
    assert download_event.count == 2
    assert download_event.total_bytes == upload_event.total_bytes
    assert download_event.target_folder == str(output)

    assert (output / "report.docx").read_bytes() == b"QUARTERLY REPORT"
    assert (output / "summary.docx").read_bytes() == b"SUMMARY"
    assert not (output / "notes.txt").exists()
    assert storage.container_names == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_empty_input_fails_without_remote_calls() -> None:
    """An empty input list never reaches storage or the service."""
    storage = InMemoryStorageBackend()
    translation = simulated_service(storage)
    orchestrator = RunOrchestrator(storage, translation, _config())

    with pytest.raises(ArgumentError) as exc_info:
        await orchestrator.run(orchestrator.create_run([], "de"))

    assert exc_info.value.info.message == "No files to translate"
    assert storage.calls == []
    assert translation.requests == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_rejected_submission_reports_error_and_cleans_up(
    documents: Path,
) -> None:
    """A rejected job reports once, deletes its containers and never polls."""
    storage = _UnreachableUrlStorage()
    events = InMemoryEventSink()
    log_sink = InMemoryLogSink()
    orchestrator = _orchestrator(
        storage, _config(), event_sink=events, log_sink=log_sink
    )
    run = orchestrator.create_run([str(documents)], "de")

    with pytest.raises(SubmissionError) as exc_info:
        await orchestrator.run(run)

    assert exc_info.value.error.code == "InvalidRequest"
    status_events = [
        event for event in events.events if isinstance(event, StatusUpdatedEvent)
    ]
    assert len(status_events) == 1
    assert status_events[0].final is True
    assert status_events[0].status.error == exc_info.value.error
    assert storage.container_names == []
    assert run.containers is not None
    deleted = [target for op, target in storage.calls if op == "delete_container"]
    assert sorted(deleted) == sorted(run.containers.all())
    assert not any(
        entry.event == RunLogEvent.JOB_STATUS for entry in log_sink.entries
    )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_folder_input_downloads_beside_the_folder(documents: Path) -> None:
    """A directory input lands in a sibling folder named after the language."""
    storage = InMemoryStorageBackend()
    log_sink = InMemoryLogSink()
    orchestrator = _orchestrator(storage, _config(), log_sink=log_sink)
    run = orchestrator.create_run([str(documents)], "fr", source_language="auto")

    result = await orchestrator.run(run)

    expected = Path(f"{documents}.fr")
    assert result.target_folder == str(expected)
    assert result.discarded == [str(documents / "notes.xyz")]
    assert sorted(path.name for path in expected.iterdir()) == ["a.txt", "b.docx"]
    assert (expected / "a.txt").read_bytes() == b"HELLO"
    assert result.download is not None
    assert result.download.total_bytes == len(b"hello") + len(b"world!")
    events = [entry.event for entry in log_sink.entries]
    assert events[0] == RunLogEvent.STARTED
    assert events[-1] == RunLogEvent.COMPLETED
    assert all(entry.elapsed_s is not None for entry in log_sink.entries)
