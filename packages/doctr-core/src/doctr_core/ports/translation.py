"""Protocol definitions and errors for the document translation service."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from doctr_schemas.jobs import (
    DocumentFormat,
    JobRequest,
    JobStatusSnapshot,
    LanguageInfo,
    ServiceError,
)


class TranslationErrorCode(StrEnum):
    """Categorized error codes for translation service calls."""

    REQUEST_FAILED = "request_failed"
    INVALID_RESPONSE = "invalid_response"


class TranslationServiceError(Exception):
    """Translation service call failed with a structured payload."""

    def __init__(
        self,
        error: ServiceError,
        *,
        code: TranslationErrorCode = TranslationErrorCode.REQUEST_FAILED,
        status_code: int | None = None,
    ) -> None:
        """Initialize the translation service error.

        Args:
            error: Structured error returned by the service.
            code: Categorized error code.
            status_code: HTTP status code of the failed call, if any.
        """
        super().__init__(error.message)
        self.error = error
        self.code = code
        self.status_code = status_code


@runtime_checkable
class TranslationBackendProtocol(Protocol):
    """Protocol for the hosted batch document translation service."""

    async def submit_job(self, request: JobRequest) -> str:
        """Submit a job and return its processing-location handle."""
        raise NotImplementedError

    async def check_status(self, handle: str) -> JobStatusSnapshot:
        """Read the current status of a submitted job."""
        raise NotImplementedError

    async def get_document_formats(self) -> list[DocumentFormat]:
        """List the document formats the service can translate."""
        raise NotImplementedError

    async def get_glossary_formats(self) -> list[DocumentFormat]:
        """List the glossary formats the service accepts."""
        raise NotImplementedError

    async def get_languages(self) -> list[LanguageInfo]:
        """List the languages the service can translate into."""
        raise NotImplementedError
