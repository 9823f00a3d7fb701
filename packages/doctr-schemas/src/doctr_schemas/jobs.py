"""Wire schemas for the document translation service.

The request shape round-trips through JSON unchanged::

    {
      "storageType": "folder",
      "source": {"sourceUrl": "...", "language": "en"},
      "targets": [
        {
          "targetUrl": "...",
          "language": "de",
          "glossaries": [{"glossaryUrl": "...", "format": "TSV"}],
          "category": "..."
        }
      ]
    }
"""

from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, Field

from doctr_schemas.base import WireSchema
from doctr_schemas.responses import ErrorResponse

FAILURE_STATUS_MARKER = "Failed"
CANCELLED_STATUSES = frozenset({"Cancelled", "Canceled"})


class GlossaryDescriptor(WireSchema):
    """Glossary attached to a translation target."""

    glossary_url: str = Field(
        ..., min_length=1, description="Time-limited glossary URL"
    )
    format: str = Field(..., min_length=1, description="Glossary file format")
    version: str | None = Field(None, description="Optional format version")


class SourceSpec(WireSchema):
    """Source container of a translation job."""

    source_url: str = Field(..., min_length=1, description="Source container URL")
    language: str | None = Field(
        None, description="Source language, omitted for automatic detection"
    )


class TargetSpec(WireSchema):
    """Target container and language of a translation job."""

    target_url: str = Field(..., min_length=1, description="Target container URL")
    language: str = Field(..., min_length=1, description="Target language code")
    glossaries: list[GlossaryDescriptor] = Field(
        default_factory=list, description="Glossaries applied to this target"
    )
    category: str | None = Field(None, description="Custom translator category")


class JobRequest(WireSchema):
    """Batch translation request submitted to the service."""

    storage_type: Literal["folder"] = Field("folder", description="Storage type")
    source: SourceSpec = Field(..., description="Source specification")
    targets: list[TargetSpec] = Field(
        ..., min_length=1, description="Target specifications"
    )


class ServiceError(WireSchema):
    """Structured error payload returned by the translation service."""

    code: str = Field(..., min_length=1, description="Service error code")
    message: str = Field(..., min_length=1, description="Service error message")
    target: str | None = Field(None, description="Offending request element")
    inner_error: ServiceError | None = Field(None, description="Nested error")

    def to_error_response(self) -> ErrorResponse:
        """Convert the service error to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        message = self.message
        if self.inner_error is not None:
            message = f"{message} ({self.inner_error.message})"
        return ErrorResponse(code=self.code, message=message, details=None)


class StatusSummary(WireSchema):
    """Per-document progress counters of a job."""

    total: int = Field(0, ge=0, description="Total documents")
    failed: int = Field(0, ge=0, description="Documents that failed")
    success: int = Field(0, ge=0, description="Documents translated")
    in_progress: int = Field(0, ge=0, description="Documents in progress")
    not_yet_started: int = Field(0, ge=0, description="Documents not yet started")
    cancelled: int = Field(0, ge=0, description="Documents cancelled")
    total_character_charged: int = Field(0, ge=0, description="Characters charged")


class JobStatusSnapshot(WireSchema):
    """Point-in-time read of a submitted job."""

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(None, description="Service job identifier")
    status: str = Field(..., min_length=1, description="Overall job status")
    created_date_time_utc: str | None = Field(None, description="Job creation time")
    last_action_date_time_utc: str | None = Field(
        None, description="Time of the last status change"
    )
    summary: StatusSummary = Field(
        default_factory=StatusSummary, description="Document counters"
    )
    error: ServiceError | None = Field(None, description="Service error, if any")

    @property
    def is_failure(self) -> bool:
        """Return True when the status text indicates a failed job."""
        return FAILURE_STATUS_MARKER in self.status

    @property
    def is_cancelled(self) -> bool:
        """Return True when the job was cancelled."""
        return self.status in CANCELLED_STATUSES

    @classmethod
    def from_service_error(cls, error: ServiceError) -> JobStatusSnapshot:
        """Build a snapshot that carries a submission error.

        Returns:
            JobStatusSnapshot: Snapshot with status ``"Failed"`` and the error.
        """
        return cls(status="Failed", error=error)


class DocumentFormat(WireSchema):
    """File format supported by the translation service."""

    format: str = Field(..., min_length=1, description="Format name")
    file_extensions: list[str] = Field(
        default_factory=list, description="File extensions of the format"
    )
    content_types: list[str] = Field(default_factory=list, description="MIME types")
    default_version: str | None = Field(None, description="Default format version")
    versions: list[str] = Field(default_factory=list, description="Format versions")


class LanguageInfo(WireSchema):
    """Language supported by the translation service."""

    code: str = Field(..., min_length=1, description="Language code")
    name: str = Field(..., min_length=1, description="English language name")
    native_name: str | None = Field(None, description="Native language name")
    dir: str | None = Field(None, description="Script direction")
