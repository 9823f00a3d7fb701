"""Result payloads for transfers and translation runs."""

from __future__ import annotations

from pydantic import Field

from doctr_schemas.base import BaseSchema
from doctr_schemas.jobs import JobStatusSnapshot
from doctr_schemas.primitives import JobState, RunId


class TransferFailure(BaseSchema):
    """A single file or blob that could not be transferred."""

    name: str = Field(..., min_length=1, description="Storage name")
    path: str | None = Field(None, description="Local path if applicable")
    error: str = Field(..., min_length=1, description="Failure reason")


class TransferReport(BaseSchema):
    """Outcome of one bounded upload or download phase."""

    count: int = Field(0, ge=0, description="Objects transferred")
    total_bytes: int = Field(0, ge=0, description="Bytes transferred")
    transferred: list[str] = Field(
        default_factory=list, description="Names transferred successfully"
    )
    failures: list[TransferFailure] = Field(
        default_factory=list, description="Per-object failures"
    )

    @property
    def failed_count(self) -> int:
        """Return the number of failed transfers."""
        return len(self.failures)


class RunResult(BaseSchema):
    """Final result of a translation run."""

    run_id: RunId = Field(..., description="Run identifier")
    state: JobState = Field(..., description="Terminal job state")
    target_folder: str | None = Field(None, description="Download directory")
    discarded: list[str] = Field(
        default_factory=list, description="Inputs rejected by extension"
    )
    upload: TransferReport = Field(..., description="Upload phase report")
    download: TransferReport | None = Field(None, description="Download phase report")
    final_status: JobStatusSnapshot | None = Field(
        None, description="Last job status snapshot"
    )
    swept_containers: int | None = Field(
        None, ge=0, description="Abandoned containers deleted during cleanup"
    )
