"""Error and response envelope schemas shared by the core and the CLI."""

from __future__ import annotations

from pydantic import Field

from doctr_schemas.base import BaseSchema
from doctr_schemas.primitives import Timestamp


class MetaInfo(BaseSchema):
    """Metadata for CLI JSON responses."""

    timestamp: Timestamp = Field(..., description="ISO-8601 response timestamp")


class ErrorDetails(BaseSchema):
    """Detailed error context for responses."""

    field: str | None = Field(None, description="Field name if applicable")
    provided: str | None = Field(None, description="Provided value")
    valid_options: list[str] | None = Field(
        None, description="Valid options if applicable"
    )


class ErrorResponse(BaseSchema):
    """Error information in response."""

    code: str = Field(..., min_length=1, description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ErrorDetails | None = Field(None, description="Optional error details")
    exit_code: int | None = Field(
        None, ge=0, description="Process exit code for CLI responses"
    )


class ApiResponse[ResponseData](BaseSchema):
    """Generic response envelope printed by ``--json`` CLI commands."""

    data: ResponseData | None = Field(
        None, description="Success payload, null on error"
    )
    error: ErrorResponse | None = Field(
        None, description="Error information, null on success"
    )
    meta: MetaInfo = Field(..., description="Response metadata")
