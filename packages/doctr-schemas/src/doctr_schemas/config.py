"""Configuration schemas for doctr translation runs."""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from doctr_schemas.base import BaseSchema
from doctr_schemas.primitives import LogSinkType

DEFAULT_CONTAINER_PREFIX = "doctr"
DEFAULT_API_PATH = "translator/text/batch/v1.1"
DEFAULT_LANGUAGES_URL = (
    "https://api.cognitive.microsofttranslator.com/languages"
    "?api-version=3.0&scope=translation"
)


class LogSinkConfig(BaseSchema):
    """Configuration for a single log sink."""

    type: LogSinkType = Field(..., description="Log sink type (console|file|noop)")
    path: str | None = Field(None, description="JSONL file path for file sinks")

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> LogSinkType:
        if isinstance(value, LogSinkType):
            return value
        if isinstance(value, str):
            return LogSinkType(value)
        return value  # type: ignore[return-value]

    @model_validator(mode="after")
    def validate_path(self) -> LogSinkConfig:
        """Ensure file sinks name a path.

        Returns:
            LogSinkConfig: Validated sink configuration.

        Raises:
            ValueError: If a file sink has no path.
        """
        if self.type == LogSinkType.FILE and not self.path:
            raise ValueError("file log sinks require a path")
        return self


class LoggingConfig(BaseSchema):
    """Logging configuration for translation runs and CLI commands."""

    sinks: list[LogSinkConfig] = Field(
        default_factory=lambda: [LogSinkConfig(type=LogSinkType.NOOP)],
        min_length=1,
        description="Log sinks to enable",
    )

    @model_validator(mode="after")
    def validate_sink_types(self) -> LoggingConfig:
        """Ensure log sink types are unique.

        Returns:
            LoggingConfig: Validated logging configuration.

        Raises:
            ValueError: If sink types are duplicated.
        """
        sink_types = [sink.type for sink in self.sinks]
        if len(set(sink_types)) != len(sink_types):
            raise ValueError("log sinks must not contain duplicates")
        return self


class StorageConfig(BaseSchema):
    """Blob storage account used to stage documents."""

    connection_string: str | None = Field(
        None, description="Storage account connection string"
    )
    container_prefix: str = Field(
        DEFAULT_CONTAINER_PREFIX,
        pattern=r"^[a-z0-9]{1,20}$",
        description="Prefix of every per-run container name",
    )
    url_expiry_hours: float = Field(
        5.0, gt=0, description="Lifetime of generated container URLs"
    )


class TranslatorConfig(BaseSchema):
    """Document translation service endpoint."""

    endpoint: str | None = Field(None, description="Translator resource endpoint")
    key: str | None = Field(None, description="Translator subscription key")
    region: str | None = Field(None, description="Translator resource region")
    category: str | None = Field(None, description="Custom translator category")
    api_path: str = Field(DEFAULT_API_PATH, description="Batch API path")
    languages_url: str = Field(
        DEFAULT_LANGUAGES_URL, description="Supported languages endpoint"
    )
    timeout_s: float = Field(30.0, gt=0, description="HTTP request timeout")


class TransferConfig(BaseSchema):
    """Concurrency settings for uploads and downloads."""

    max_parallel_transfers: int = Field(
        100, ge=1, description="Max in-flight transfers per phase"
    )


class PollingConfig(BaseSchema):
    """Job status polling settings."""

    interval_s: float = Field(1.0, gt=0, description="Delay between status checks")


class CleanupConfig(BaseSchema):
    """Container cleanup and abandoned-container sweep settings."""

    no_delete: bool = Field(False, description="Keep run containers for debugging")
    retention_days: float = Field(
        7.0, gt=0, description="Age after which abandoned containers are swept"
    )
    sweep_probability: float = Field(
        0.1, ge=0, le=1, description="Chance of sweeping during run cleanup"
    )


class RunConfig(BaseSchema):
    """Complete configuration for a translation run."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    translator: TranslatorConfig = Field(default_factory=TranslatorConfig)
    transfer: TransferConfig = Field(default_factory=TransferConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    allowed_extensions: list[str] | None = Field(
        None, description="Translatable extensions, queried from the service if unset"
    )
    supported_languages: list[str] | None = Field(
        None, description="Valid target languages, queried from the service if unset"
    )

    @field_validator("allowed_extensions", mode="after")
    @classmethod
    def _normalize_extensions(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        normalized: list[str] = []
        for extension in value:
            cleaned = extension.strip().lower()
            if not cleaned:
                continue
            if not cleaned.startswith("."):
                cleaned = f".{cleaned}"
            if cleaned not in normalized:
                normalized.append(cleaned)
        return normalized
