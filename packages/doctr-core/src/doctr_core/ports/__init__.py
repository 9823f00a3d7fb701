"""Ports consumed by the doctr orchestration core."""

from doctr_core.ports.orchestrator import (
    ArgumentError,
    ConfigurationError,
    LogSinkProtocol,
    OrchestrationError,
    OrchestrationErrorCode,
    OrchestrationErrorDetails,
    OrchestrationErrorInfo,
    RunEventSinkProtocol,
    SubmissionError,
    TerminalFailureError,
    build_run_completed_log,
    build_run_failed_log,
    build_run_started_log,
)
from doctr_core.ports.storage import (
    StorageBackendProtocol,
    StorageError,
    StorageErrorCode,
    StorageErrorDetails,
    StorageErrorInfo,
)
from doctr_core.ports.translation import (
    TranslationBackendProtocol,
    TranslationErrorCode,
    TranslationServiceError,
)

__all__ = [
    "ArgumentError",
    "ConfigurationError",
    "LogSinkProtocol",
    "OrchestrationError",
    "OrchestrationErrorCode",
    "OrchestrationErrorDetails",
    "OrchestrationErrorInfo",
    "RunEventSinkProtocol",
    "StorageBackendProtocol",
    "StorageError",
    "StorageErrorCode",
    "StorageErrorDetails",
    "StorageErrorInfo",
    "SubmissionError",
    "TerminalFailureError",
    "TranslationBackendProtocol",
    "TranslationErrorCode",
    "TranslationServiceError",
    "build_run_completed_log",
    "build_run_failed_log",
    "build_run_started_log",
]
