"""Unit tests for CLI exit code taxonomy and registry."""

import pytest

from doctr_core.ports.orchestrator import OrchestrationErrorCode
from doctr_core.ports.storage import StorageErrorCode
from doctr_core.ports.translation import TranslationErrorCode
from doctr_schemas.exit_codes import (
    ERROR_CODE_TO_EXIT_CODE,
    ExitCode,
    resolve_exit_code,
)


def test_exit_code_values() -> None:
    """Ensure exit codes keep their documented numbers."""
    assert ExitCode.SUCCESS == 0
    assert ExitCode.CONFIG_ERROR == 10
    assert ExitCode.ARGUMENT_ERROR == 11
    assert ExitCode.JOB_FAILED == 21
    assert ExitCode.STORAGE_ERROR == 23
    assert ExitCode.SERVICE_ERROR == 30
    assert ExitCode.RUNTIME_ERROR == 99


@pytest.mark.parametrize(
    ("domain", "codes"),
    [
        ("orchestration", list(OrchestrationErrorCode)),
        ("storage", list(StorageErrorCode)),
        ("translation", list(TranslationErrorCode)),
    ],
)
def test_every_domain_error_code_is_registered(domain: str, codes: list[str]) -> None:
    """Ensure no domain error code falls through to the runtime exit code."""
    for code in codes:
        assert f"{domain}.{code}" in ERROR_CODE_TO_EXIT_CODE


def test_resolve_exit_code_prefers_domain_qualified_code() -> None:
    """Ensure domain lookups win over unqualified codes."""
    assert (
        resolve_exit_code("invalid_argument", domain="orchestration")
        == ExitCode.ARGUMENT_ERROR
    )
    assert (
        resolve_exit_code("terminal_failure", domain="orchestration")
        == ExitCode.JOB_FAILED
    )
    assert resolve_exit_code("auth_error", domain="storage") == ExitCode.STORAGE_ERROR


def test_resolve_exit_code_falls_back() -> None:
    """Ensure unqualified and unknown codes resolve sensibly."""
    assert resolve_exit_code("config_error", domain="storage") == ExitCode.CONFIG_ERROR
    assert resolve_exit_code("mystery") == ExitCode.RUNTIME_ERROR
