"""Runtime settings loaded from the environment and ``.env`` files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from doctr_schemas.config import (
    DEFAULT_API_PATH,
    DEFAULT_LANGUAGES_URL,
    CleanupConfig,
    LoggingConfig,
    LogSinkConfig,
    PollingConfig,
    RunConfig,
    StorageConfig,
    TransferConfig,
    TranslatorConfig,
)
from doctr_schemas.primitives import LogSinkType

_ENV_PATH = Path(".env")


class DoctrSettings(BaseSettings):
    """Credentials and defaults read from ``DOCTR_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_PATH,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Blob storage staging area
    storage_connection_string: SecretStr | None = Field(
        default=None, alias="DOCTR_STORAGE_CONNECTION_STRING"
    )
    container_prefix: str = Field(default="doctr", alias="DOCTR_CONTAINER_PREFIX")

    # Document translation resource
    translator_endpoint: str | None = Field(
        default=None, alias="DOCTR_TRANSLATOR_ENDPOINT"
    )
    translator_key: SecretStr | None = Field(default=None, alias="DOCTR_TRANSLATOR_KEY")
    translator_region: str | None = Field(default=None, alias="DOCTR_TRANSLATOR_REGION")
    translator_api_path: str = Field(
        default=DEFAULT_API_PATH, alias="DOCTR_TRANSLATOR_API_PATH"
    )
    translator_languages_url: str = Field(
        default=DEFAULT_LANGUAGES_URL, alias="DOCTR_TRANSLATOR_LANGUAGES_URL"
    )
    translator_timeout_s: float = Field(
        default=30.0, gt=0, alias="DOCTR_TRANSLATOR_TIMEOUT"
    )
    category: str | None = Field(default=None, alias="DOCTR_CATEGORY")

    log_file: Path | None = Field(default=None, alias="DOCTR_LOG_FILE")


@lru_cache(maxsize=1)
def get_settings() -> DoctrSettings:
    """Return cached settings loaded from the environment."""
    return DoctrSettings()


def build_run_config(
    settings: DoctrSettings,
    *,
    category: str | None = None,
    max_parallel: int | None = None,
    poll_interval: float | None = None,
    no_delete: bool = False,
    retention_days: float | None = None,
    log_file: Path | None = None,
    console_logs: bool = False,
) -> RunConfig:
    """Merge environment settings and command-line overrides into a run config.

    Args:
        settings: Environment settings.
        category: Custom translator category overriding the environment.
        max_parallel: Maximum in-flight transfers per phase.
        poll_interval: Seconds between job status checks.
        no_delete: Keep the run's containers after the run.
        retention_days: Age after which abandoned containers are swept.
        log_file: JSONL log file overriding the environment.
        console_logs: Also write JSONL logs to stderr.

    Returns:
        RunConfig: Validated run configuration.
    """
    connection_string = (
        settings.storage_connection_string.get_secret_value()
        if settings.storage_connection_string is not None
        else None
    )
    sinks: list[LogSinkConfig] = []
    resolved_log_file = log_file or settings.log_file
    if resolved_log_file is not None:
        sinks.append(LogSinkConfig(type=LogSinkType.FILE, path=str(resolved_log_file)))
    if console_logs:
        sinks.append(LogSinkConfig(type=LogSinkType.CONSOLE))
    if not sinks:
        sinks.append(LogSinkConfig(type=LogSinkType.NOOP))

    cleanup = CleanupConfig(no_delete=no_delete)
    if retention_days is not None:
        cleanup = CleanupConfig(no_delete=no_delete, retention_days=retention_days)

    return RunConfig(
        storage=StorageConfig(
            connection_string=connection_string,
            container_prefix=settings.container_prefix,
        ),
        translator=TranslatorConfig(
            endpoint=settings.translator_endpoint,
            key=(
                settings.translator_key.get_secret_value()
                if settings.translator_key is not None
                else None
            ),
            region=settings.translator_region,
            api_path=settings.translator_api_path,
            languages_url=settings.translator_languages_url,
            timeout_s=settings.translator_timeout_s,
            category=category or settings.category,
        ),
        transfer=(
            TransferConfig(max_parallel_transfers=max_parallel)
            if max_parallel is not None
            else TransferConfig()
        ),
        polling=(
            PollingConfig(interval_s=poll_interval)
            if poll_interval is not None
            else PollingConfig()
        ),
        cleanup=cleanup,
        logging=LoggingConfig(sinks=sinks),
    )
