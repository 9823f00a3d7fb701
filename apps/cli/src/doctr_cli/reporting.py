"""Rich rendering of run events and command results."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from doctr_core import RunEventSinkProtocol
from doctr_schemas.events import (
    DownloadCompletedEvent,
    FilesDiscardedEvent,
    RunEvent,
    StatusUpdatedEvent,
    UploadCompletedEvent,
)
from doctr_schemas.jobs import DocumentFormat, JobStatusSnapshot, LanguageInfo
from doctr_schemas.responses import ErrorResponse
from doctr_schemas.results import RunResult, TransferReport


class ConsoleEventReporter(RunEventSinkProtocol):
    """Print run notifications as they arrive."""

    def __init__(self, console: Console) -> None:
        """Initialize the reporter with a rich console."""
        self._console = console

    async def emit_event(self, event: RunEvent) -> None:
        """Print one run event."""
        if isinstance(event, FilesDiscardedEvent):
            for path in event.paths:
                self._console.print(f"[yellow]Skipped[/yellow] {path}")
        elif isinstance(event, UploadCompletedEvent):
            self._console.print(
                f"Uploaded {event.count} document(s), "
                f"{_format_bytes(event.total_bytes)}"
            )
            for failure in event.failures:
                self._console.print(
                    f"[red]Upload failed[/red] {failure.name}: {failure.error}"
                )
        elif isinstance(event, StatusUpdatedEvent):
            prefix = "Final status" if event.final else "Status"
            self._console.print(f"{prefix}: {_format_status(event.status)}")
        elif isinstance(event, DownloadCompletedEvent):
            self._console.print(
                f"Downloaded {event.count} document(s) to {event.target_folder}"
            )
            for failure in event.failures:
                self._console.print(
                    f"[red]Download failed[/red] {failure.name}: {failure.error}"
                )


def render_run_result(result: RunResult, console: Console) -> None:
    """Render the run summary panel."""
    table = Table.grid(padding=(0, 1))
    table.add_column(justify="right", style="bold")
    table.add_column()
    table.add_row("Run ID", str(result.run_id))
    table.add_row("State", str(result.state))
    if result.final_status is not None:
        table.add_row("Job status", _format_status(result.final_status))
    table.add_row("Uploaded", _format_report(result.upload))
    if result.download is not None:
        table.add_row("Downloaded", _format_report(result.download))
    table.add_row("Output", result.target_folder or "n/a")
    if result.discarded:
        table.add_row("Skipped", str(len(result.discarded)))
    if result.swept_containers is not None:
        table.add_row("Swept", f"{result.swept_containers} container(s)")
    console.print(Panel(table, title="doctr translate", expand=False))


def render_containers_swept(deleted: int, console: Console) -> None:
    """Render the number of swept containers."""
    console.print(f"Deleted {deleted} abandoned container(s)")


def render_formats(formats: list[DocumentFormat], console: Console) -> None:
    """Render the document formats table."""
    table = Table(title="Document Formats")
    table.add_column("Format")
    table.add_column("Extensions")
    table.add_column("Content Types")
    for entry in formats:
        table.add_row(
            entry.format,
            ", ".join(entry.file_extensions),
            ", ".join(entry.content_types),
        )
    console.print(table)


def render_languages(languages: list[LanguageInfo], console: Console) -> None:
    """Render the languages table."""
    table = Table(title="Languages")
    table.add_column("Code")
    table.add_column("Name")
    table.add_column("Native Name")
    for language in languages:
        table.add_row(language.code, language.name, language.native_name or "")
    console.print(table)


def render_error(error: ErrorResponse, console: Console) -> None:
    """Render an error message."""
    console.print(f"[red]Error:[/red] {error.message}")


def _format_status(snapshot: JobStatusSnapshot) -> str:
    summary = snapshot.summary
    text = (
        f"{snapshot.status} ({summary.success}/{summary.total} translated, "
        f"{summary.failed} failed)"
    )
    if snapshot.error is not None:
        text = f"{text}: {snapshot.error.message}"
    return text


def _format_report(report: TransferReport) -> str:
    text = f"{report.count} file(s), {_format_bytes(report.total_bytes)}"
    if report.failures:
        text = f"{text}, {report.failed_count} failed"
    return text


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
