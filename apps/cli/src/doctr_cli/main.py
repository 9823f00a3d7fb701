"""CLI entry point - thin adapter over doctr-core."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from contextlib import AsyncExitStack
from datetime import timedelta
from pathlib import Path
from typing import NamedTuple

import orjson
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console

from doctr_cli.logging_setup import configure_logging
from doctr_cli.reporting import (
    ConsoleEventReporter,
    render_containers_swept,
    render_error,
    render_formats,
    render_languages,
    render_run_result,
)
from doctr_cli.settings import DoctrSettings, build_run_config, get_settings
from doctr_core import (
    VERSION,
    ContainerLifecycleManager,
    OrchestrationError,
    ResourceNamer,
    RunEventSinkProtocol,
    RunOrchestrator,
    StorageBackendProtocol,
    StorageError,
    TranslationBackendProtocol,
    TranslationServiceError,
    now_timestamp,
)
from doctr_io import (
    AzureBlobStorageBackend,
    CompositeEventSink,
    DocumentTranslationClient,
    FileEventSink,
    InMemoryStorageBackend,
    InMemoryTranslationBackend,
    build_log_sink,
)
from doctr_schemas.config import RunConfig, TranslatorConfig
from doctr_schemas.exit_codes import ExitCode, resolve_exit_code
from doctr_schemas.primitives import LogLevel
from doctr_schemas.redaction import Redactor, connection_string_secrets
from doctr_schemas.responses import ApiResponse, ErrorResponse, MetaInfo
from doctr_schemas.results import RunResult

PATHS_ARGUMENT = typer.Argument(
    ..., help="Files or directories (non-recursive) to translate"
)
TO_OPTION = typer.Option(..., "--to", "-t", help="Target language code")
FROM_OPTION = typer.Option(
    None, "--from", "-f", help="Source language code; omit or 'auto' to detect"
)
GLOSSARY_OPTION = typer.Option(
    None, "--glossary", "-g", help="Glossary file (repeatable)"
)
TARGET_FOLDER_OPTION = typer.Option(
    None,
    "--target-folder",
    "-o",
    help="Output directory; defaults to '<input folder>.<language>'",
)
CATEGORY_OPTION = typer.Option(None, "--category", help="Custom translator category")
NO_DELETE_OPTION = typer.Option(
    False, "--no-delete", help="Keep the run's storage containers for debugging"
)
MAX_PARALLEL_OPTION = typer.Option(
    None, "--max-parallel", min=1, help="Maximum concurrent uploads and downloads"
)
POLL_INTERVAL_OPTION = typer.Option(
    None, "--poll-interval", min=0.001, help="Seconds between job status checks"
)
DRY_RUN_OPTION = typer.Option(
    False,
    "--dry-run",
    help="Use in-memory storage and a simulated translation service",
)
LOG_FILE_OPTION = typer.Option(None, "--log-file", help="Append JSONL run logs here")
EVENTS_FILE_OPTION = typer.Option(
    None, "--events-file", help="Append JSONL run events here"
)
VERBOSE_OPTION = typer.Option(
    False, "--verbose", "-v", help="Write JSONL run logs to stderr"
)
JSON_OPTION = typer.Option(
    False, "--json", help="Print a JSON response envelope instead of tables"
)
RETENTION_DAYS_OPTION = typer.Option(
    7.0, "--retention-days", min=0, help="Delete run containers older than this"
)

app = typer.Typer(
    help="Batch document translation through blob storage",
    no_args_is_help=True,
)


class _ConfigError(Exception):
    """Raised when required credentials or endpoints are missing."""


class _Backends(NamedTuple):
    storage: StorageBackendProtocol
    translation: TranslationBackendProtocol


@app.callback()
def main_callback() -> None:
    """doctr - translate documents in bulk."""


@app.command()
def version() -> None:
    """Display version information."""
    rprint(f"[bold]doctr[/bold] v{VERSION}")


@app.command()
def translate(
    paths: list[Path] = PATHS_ARGUMENT,
    to_language: str = TO_OPTION,
    from_language: str | None = FROM_OPTION,
    glossaries: list[Path] | None = GLOSSARY_OPTION,
    target_folder: Path | None = TARGET_FOLDER_OPTION,
    category: str | None = CATEGORY_OPTION,
    no_delete: bool = NO_DELETE_OPTION,
    max_parallel: int | None = MAX_PARALLEL_OPTION,
    poll_interval: float | None = POLL_INTERVAL_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    log_file: Path | None = LOG_FILE_OPTION,
    events_file: Path | None = EVENTS_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Translate documents and download the results.

    Raises:
        typer.Exit: When the run fails.
    """
    configure_logging("info" if verbose else "warning")
    console = None if json_output else Console(stderr=True)
    result: RunResult | None = None
    error: ErrorResponse | None = None
    try:
        settings = get_settings()
        config = build_run_config(
            settings,
            category=category,
            max_parallel=max_parallel,
            poll_interval=poll_interval,
            no_delete=no_delete,
            log_file=log_file,
            console_logs=verbose,
        )
        result = asyncio.run(
            _translate_async(
                settings=settings,
                config=config,
                paths=[str(path) for path in paths],
                to_language=to_language,
                from_language=from_language,
                glossaries=[str(path) for path in glossaries or []],
                target_folder=str(target_folder) if target_folder else None,
                dry_run=dry_run,
                events_file=events_file,
                console=console,
            )
        )
    except Exception as exc:
        error = _error_from_exception(exc)
    _finish(result, error, console, render_run_result)


@app.command()
def clear(
    retention_days: float = RETENTION_DAYS_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Delete containers left behind by abandoned runs.

    Raises:
        typer.Exit: When the sweep fails.
    """
    configure_logging()
    console = None if json_output else Console(stderr=True)
    deleted: int | None = None
    error: ErrorResponse | None = None
    try:
        settings = get_settings()
        deleted = asyncio.run(
            _clear_async(settings, timedelta(days=retention_days), dry_run=dry_run)
        )
    except Exception as exc:
        error = _error_from_exception(exc)
    _finish(deleted, error, console, render_containers_swept)


@app.command()
def formats(
    dry_run: bool = DRY_RUN_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """List the document formats the translation service accepts.

    Raises:
        typer.Exit: When the service call fails.
    """
    configure_logging()
    console = None if json_output else Console()
    result = None
    error: ErrorResponse | None = None
    try:
        translation = _build_translation(
            build_run_config(get_settings()).translator, dry_run=dry_run
        )
        result = asyncio.run(translation.get_document_formats())
    except Exception as exc:
        error = _error_from_exception(exc)
    _finish(result, error, console, render_formats)


@app.command()
def languages(
    dry_run: bool = DRY_RUN_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """List the languages the translation service translates into.

    Raises:
        typer.Exit: When the service call fails.
    """
    configure_logging()
    console = None if json_output else Console()
    result = None
    error: ErrorResponse | None = None
    try:
        translation = _build_translation(
            build_run_config(get_settings()).translator, dry_run=dry_run
        )
        result = asyncio.run(translation.get_languages())
    except Exception as exc:
        error = _error_from_exception(exc)
    _finish(result, error, console, render_languages)


async def _translate_async(
    *,
    settings: DoctrSettings,
    config: RunConfig,
    paths: list[str],
    to_language: str,
    from_language: str | None,
    glossaries: list[str],
    target_folder: str | None,
    dry_run: bool,
    events_file: Path | None,
    console: Console | None,
) -> RunResult:
    async with AsyncExitStack() as stack:
        backends = await _open_backends(settings, config, stack, dry_run=dry_run)
        log_sink = build_log_sink(
            config.logging,
            redactor=_build_redactor(config),
            min_console_level=LogLevel.INFO,
        )
        event_sinks: list[RunEventSinkProtocol] = []
        if console is not None:
            event_sinks.append(ConsoleEventReporter(console))
        if events_file is not None:
            event_sinks.append(FileEventSink(events_file))
        orchestrator = RunOrchestrator(
            backends.storage,
            backends.translation,
            config,
            log_sink=log_sink,
            event_sink=CompositeEventSink(event_sinks) if event_sinks else None,
        )
        run = orchestrator.create_run(
            paths,
            to_language,
            source_language=from_language,
            glossary_files=glossaries,
            target_folder=target_folder,
        )
        return await orchestrator.run(run)


async def _clear_async(
    settings: DoctrSettings, retention: timedelta, *, dry_run: bool
) -> int:
    async with AsyncExitStack() as stack:
        storage: StorageBackendProtocol = (
            InMemoryStorageBackend()
            if dry_run
            else await _open_storage(settings, stack)
        )
        lifecycle = ContainerLifecycleManager(
            storage, ResourceNamer(settings.container_prefix)
        )
        return await lifecycle.sweep_abandoned(retention)


async def _open_backends(
    settings: DoctrSettings,
    config: RunConfig,
    stack: AsyncExitStack,
    *,
    dry_run: bool,
) -> _Backends:
    if dry_run:
        storage = InMemoryStorageBackend()
        return _Backends(storage, InMemoryTranslationBackend(storage))
    return _Backends(
        await _open_storage(settings, stack),
        _build_translation(config.translator, dry_run=False),
    )


async def _open_storage(
    settings: DoctrSettings, stack: AsyncExitStack
) -> AzureBlobStorageBackend:
    if settings.storage_connection_string is None:
        raise _ConfigError("DOCTR_STORAGE_CONNECTION_STRING is not set")
    backend = AzureBlobStorageBackend(
        settings.storage_connection_string.get_secret_value()
    )
    return await stack.enter_async_context(backend)


def _build_translation(
    translator: TranslatorConfig, *, dry_run: bool
) -> TranslationBackendProtocol:
    if dry_run:
        return InMemoryTranslationBackend(InMemoryStorageBackend())
    if not translator.endpoint:
        raise _ConfigError("DOCTR_TRANSLATOR_ENDPOINT is not set")
    if translator.key is None:
        raise _ConfigError("DOCTR_TRANSLATOR_KEY is not set")
    return DocumentTranslationClient(
        translator.endpoint,
        translator.key,
        region=translator.region,
        api_path=translator.api_path,
        languages_url=translator.languages_url,
        timeout_s=translator.timeout_s,
    )


def _build_redactor(config: RunConfig) -> Redactor:
    literals = connection_string_secrets(config.storage.connection_string)
    if config.translator.key:
        literals.append(config.translator.key)
    return Redactor(literal_values=literals)


def _finish[DataT](
    data: DataT | None,
    error: ErrorResponse | None,
    console: Console | None,
    render: Callable[[DataT, Console], None],
) -> None:
    """Print the command outcome and exit non-zero on error.

    Raises:
        typer.Exit: When the command failed.
    """
    if console is None:
        response = ApiResponse(
            data=data, error=error, meta=MetaInfo(timestamp=now_timestamp())
        )
        payload = response.model_dump(mode="json")
        sys.stdout.write(orjson.dumps(payload).decode() + "\n")
    elif error is not None:
        render_error(error, console)
    elif data is not None:
        render(data, console)
    if error is not None:
        raise typer.Exit(code=error.exit_code or int(ExitCode.RUNTIME_ERROR))


def _with_exit_code(error: ErrorResponse, exit_code: ExitCode) -> ErrorResponse:
    return error.model_copy(update={"exit_code": int(exit_code)})


def _error_from_exception(exc: Exception) -> ErrorResponse:
    if isinstance(exc, OrchestrationError):
        return _with_exit_code(
            exc.info.to_error_response(),
            resolve_exit_code(str(exc.info.code), domain="orchestration"),
        )
    if isinstance(exc, StorageError):
        return _with_exit_code(
            exc.info.to_error_response(),
            resolve_exit_code(str(exc.info.code), domain="storage"),
        )
    if isinstance(exc, TranslationServiceError):
        return _with_exit_code(
            exc.error.to_error_response(),
            resolve_exit_code(str(exc.code), domain="translation"),
        )
    if isinstance(exc, ValidationError):
        message = "Config validation failed"
        errors = exc.errors()
        if errors:
            first = errors[0]
            label = ".".join(str(part) for part in first.get("loc", ()))
            detail = first.get("msg", "")
            if label and detail:
                message = f"Config validation failed: {label} - {detail}"
            elif detail:
                message = f"Config validation failed: {detail}"
        return ErrorResponse(
            code="config_error",
            message=message,
            exit_code=int(ExitCode.CONFIG_ERROR),
        )
    if isinstance(exc, _ConfigError):
        return ErrorResponse(
            code="config_error",
            message=str(exc),
            exit_code=int(ExitCode.CONFIG_ERROR),
        )
    return ErrorResponse(
        code="runtime_error",
        message=str(exc) or type(exc).__name__,
        exit_code=int(ExitCode.RUNTIME_ERROR),
    )


def main() -> None:
    """Entrypoint invoked by ``python -m doctr_cli`` or console scripts."""
    app()


if __name__ == "__main__":
    main()
