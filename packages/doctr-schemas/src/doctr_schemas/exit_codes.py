"""CLI exit code taxonomy and error-to-exit-code registry.

Exit code ranges:
- 0: Success
- 10-19: Client/input errors (arguments, configuration)
- 20-29: Domain/processing errors (orchestration, storage)
- 30-39: External service errors (translation service)
- 99: Unexpected runtime errors
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """CLI exit codes by failure category."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    ARGUMENT_ERROR = 11
    ORCHESTRATION_ERROR = 20
    JOB_FAILED = 21
    STORAGE_ERROR = 23
    SERVICE_ERROR = 30
    RUNTIME_ERROR = 99


ERROR_CODE_TO_EXIT_CODE: dict[str, ExitCode] = {
    # --- CLI-level codes (no prefix) ---
    "config_error": ExitCode.CONFIG_ERROR,
    "runtime_error": ExitCode.RUNTIME_ERROR,
    # --- Orchestration domain ---
    "orchestration.invalid_argument": ExitCode.ARGUMENT_ERROR,
    "orchestration.configuration_error": ExitCode.CONFIG_ERROR,
    "orchestration.submission_rejected": ExitCode.SERVICE_ERROR,
    "orchestration.terminal_failure": ExitCode.JOB_FAILED,
    # --- Storage domain ---
    "storage.not_found": ExitCode.STORAGE_ERROR,
    "storage.conflict": ExitCode.STORAGE_ERROR,
    "storage.io_error": ExitCode.STORAGE_ERROR,
    "storage.auth_error": ExitCode.STORAGE_ERROR,
    # --- Translation service domain ---
    "translation.request_failed": ExitCode.SERVICE_ERROR,
    "translation.invalid_response": ExitCode.SERVICE_ERROR,
}


def resolve_exit_code(error_code: str, *, domain: str | None = None) -> ExitCode:
    """Resolve an error code string to its ExitCode.

    Args:
        error_code: The error code string (e.g. "invalid_argument").
        domain: Optional domain prefix (e.g. "orchestration", "storage").
            When provided, the lookup uses ``"{domain}.{error_code}"``
            first, falling back to an unqualified lookup.

    Returns:
        The matching ExitCode, or RUNTIME_ERROR if no mapping is found.
    """
    if domain:
        qualified = f"{domain}.{error_code}"
        if qualified in ERROR_CODE_TO_EXIT_CODE:
            return ERROR_CODE_TO_EXIT_CODE[qualified]

    if error_code in ERROR_CODE_TO_EXIT_CODE:
        return ERROR_CODE_TO_EXIT_CODE[error_code]

    return ExitCode.RUNTIME_ERROR
