"""JSONL log entry schema for run events."""

from __future__ import annotations

from pydantic import Field

from doctr_schemas.base import BaseSchema
from doctr_schemas.primitives import (
    EventName,
    JsonValue,
    LogLevel,
    RunId,
    RunPhase,
    Timestamp,
)


class LogEntry(BaseSchema):
    """Single log line in JSONL format."""

    timestamp: Timestamp = Field(
        ..., description="ISO-8601 timestamp for the log entry"
    )
    level: LogLevel = Field(..., description="Log level")
    event: EventName = Field(..., description="Event name")
    run_id: RunId = Field(..., description="Translation run identifier")
    phase: RunPhase | None = Field(None, description="Run phase if applicable")
    elapsed_s: float | None = Field(
        None, ge=0, description="Seconds since the run started"
    )
    message: str = Field(..., min_length=1, description="Log message")
    data: dict[str, JsonValue] | None = Field(None, description="Structured event data")
