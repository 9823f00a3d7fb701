"""Primitive types and enums shared across doctr schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import Field

ISO_8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:\d{2})$"
)
# Blob container names: lowercase letters, digits and single hyphens, 3-63 chars.
CONTAINER_NAME_PATTERN = r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){2,62}$"
EXTENSION_PATTERN = r"^\.[a-z0-9]+$"
EVENT_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"

type RunId = UUID
type Timestamp = Annotated[str, Field(pattern=ISO_8601_PATTERN)]
type ContainerName = Annotated[str, Field(pattern=CONTAINER_NAME_PATTERN)]
type FileExtension = Annotated[str, Field(pattern=EXTENSION_PATTERN)]
type EventName = Annotated[str, Field(pattern=EVENT_NAME_PATTERN)]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]


class ContainerRole(StrEnum):
    """Role of a per-run storage container."""

    SOURCE = "source"
    TARGET = "target"
    GLOSSARY = "glossary"


ROLE_SUFFIXES: dict[ContainerRole, str] = {
    ContainerRole.SOURCE: "src",
    ContainerRole.TARGET: "tgt",
    ContainerRole.GLOSSARY: "gls",
}


class AccessLevel(StrEnum):
    """Permission scope granted by a time-limited container URL."""

    READ = "read"
    FULL = "full"


class RunPhase(StrEnum):
    """Sequential phases of a translation run."""

    FILTER = "filter"
    CONTAINERS = "containers"
    UPLOAD = "upload"
    SUBMIT = "submit"
    POLL = "poll"
    DOWNLOAD = "download"
    CLEANUP = "cleanup"


class JobState(StrEnum):
    """Lifecycle states of a submitted translation job."""

    UNKNOWN = "unknown"
    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class LogLevel(StrEnum):
    """Log level values for JSONL logs."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogSinkType(StrEnum):
    """Supported log sink types."""

    CONSOLE = "console"
    FILE = "file"
    NOOP = "noop"
