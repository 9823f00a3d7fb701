"""Protocol definitions, errors and log builders for run orchestration."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from doctr_schemas.base import BaseSchema
from doctr_schemas.events import RunEvent, RunLogEvent
from doctr_schemas.jobs import JobStatusSnapshot, ServiceError
from doctr_schemas.logs import LogEntry
from doctr_schemas.primitives import (
    JobState,
    LogLevel,
    RunId,
    RunPhase,
    Timestamp,
)
from doctr_schemas.responses import ErrorDetails, ErrorResponse


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Protocol for emitting JSONL log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Emit a log entry."""
        raise NotImplementedError


@runtime_checkable
class RunEventSinkProtocol(Protocol):
    """Protocol for delivering run notifications to the caller.

    Events arrive in run order: files discarded (if any), upload completed,
    zero or more status updates, download completed.
    """

    async def emit_event(self, event: RunEvent) -> None:
        """Deliver a run event."""
        raise NotImplementedError


class OrchestrationErrorCode(StrEnum):
    """Categorized error codes for orchestration failures."""

    INVALID_ARGUMENT = "invalid_argument"
    CONFIGURATION_ERROR = "configuration_error"
    SUBMISSION_REJECTED = "submission_rejected"
    TERMINAL_FAILURE = "terminal_failure"


class OrchestrationErrorDetails(BaseSchema):
    """Detailed orchestration error context."""

    phase: RunPhase | None = Field(None, description="Phase associated with error")
    argument: str | None = Field(None, description="Offending argument name")
    provided: str | None = Field(None, description="Offending value")
    job_status: str | None = Field(None, description="Job status if applicable")
    reason: str | None = Field(None, description="Additional error context")


class OrchestrationErrorInfo(BaseSchema):
    """Structured orchestration error data."""

    code: OrchestrationErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: OrchestrationErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert orchestration error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.argument is not None:
            details = ErrorDetails(
                field=self.details.argument,
                provided=self.details.provided,
                valid_options=None,
            )
        return ErrorResponse(code=str(self.code), message=self.message, details=details)


class OrchestrationError(Exception):
    """Orchestration error with structured details."""

    def __init__(self, info: OrchestrationErrorInfo) -> None:
        """Initialize the orchestration error.

        Args:
            info: Structured orchestration error information.
        """
        super().__init__(info.message)
        self.info = info


class ArgumentError(OrchestrationError):
    """Run arguments are unusable; raised before any remote resource exists."""

    def __init__(
        self, message: str, *, argument: str | None = None, provided: str | None = None
    ) -> None:
        """Initialize the argument error.

        Args:
            message: Error message.
            argument: Offending argument name.
            provided: Offending value.
        """
        super().__init__(
            OrchestrationErrorInfo(
                code=OrchestrationErrorCode.INVALID_ARGUMENT,
                message=message,
                details=OrchestrationErrorDetails(
                    phase=RunPhase.FILTER, argument=argument, provided=provided
                ),
            )
        )


class ConfigurationError(ArgumentError):
    """Run configuration is unusable (for example an empty extension set)."""

    def __init__(self, message: str, *, argument: str | None = None) -> None:
        """Initialize the configuration error.

        Args:
            message: Error message.
            argument: Offending configuration key.
        """
        super().__init__(message, argument=argument)
        self.info = self.info.model_copy(
            update={"code": OrchestrationErrorCode.CONFIGURATION_ERROR}
        )


class SubmissionError(OrchestrationError):
    """The translation service rejected the job request."""

    def __init__(self, error: ServiceError) -> None:
        """Initialize the submission error.

        Args:
            error: Structured error returned by the service.
        """
        super().__init__(
            OrchestrationErrorInfo(
                code=OrchestrationErrorCode.SUBMISSION_REJECTED,
                message=f"Translation job submission failed: {error.message}",
                details=OrchestrationErrorDetails(
                    phase=RunPhase.SUBMIT, reason=error.code
                ),
            )
        )
        self.error = error


class TerminalFailureError(OrchestrationError):
    """The translation job ended in a failed status."""

    def __init__(self, snapshot: JobStatusSnapshot) -> None:
        """Initialize the terminal failure error.

        Args:
            snapshot: Final job status snapshot.
        """
        reason = snapshot.error.message if snapshot.error is not None else None
        super().__init__(
            OrchestrationErrorInfo(
                code=OrchestrationErrorCode.TERMINAL_FAILURE,
                message=f"Translation job ended with status {snapshot.status}",
                details=OrchestrationErrorDetails(
                    phase=RunPhase.POLL, job_status=snapshot.status, reason=reason
                ),
            )
        )
        self.snapshot = snapshot


def build_run_started_log(
    timestamp: Timestamp, run_id: RunId, file_count: int, target_language: str
) -> LogEntry:
    """Build a log entry for run start.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Translation run identifier.
        file_count: Number of input paths requested.
        target_language: Requested target language.

    Returns:
        LogEntry: Structured run start log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=RunLogEvent.STARTED,
        run_id=run_id,
        phase=None,
        elapsed_s=0.0,
        message="Translation run started",
        data={"file_count": file_count, "target_language": target_language},
    )


def build_run_completed_log(
    timestamp: Timestamp, run_id: RunId, state: JobState, elapsed_s: float
) -> LogEntry:
    """Build a log entry for run completion.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Translation run identifier.
        state: Terminal job state.
        elapsed_s: Seconds since the run started.

    Returns:
        LogEntry: Structured run completion log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=RunLogEvent.COMPLETED,
        run_id=run_id,
        phase=None,
        elapsed_s=elapsed_s,
        message="Translation run completed",
        data={"state": str(state)},
    )


def build_run_failed_log(
    timestamp: Timestamp,
    run_id: RunId,
    error: ErrorResponse,
    elapsed_s: float,
    phase: RunPhase | None = None,
) -> LogEntry:
    """Build a log entry for run failure.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Translation run identifier.
        error: Error payload describing the failure.
        elapsed_s: Seconds since the run started.
        phase: Phase that failed, if known.

    Returns:
        LogEntry: Structured run failure log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.ERROR,
        event=RunLogEvent.FAILED,
        run_id=run_id,
        phase=phase,
        elapsed_s=elapsed_s,
        message=error.message,
        data={"error_code": error.code},
    )
