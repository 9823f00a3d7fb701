"""Run event taxonomy and caller-facing notifications."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import Field

from doctr_schemas.base import BaseSchema
from doctr_schemas.jobs import JobStatusSnapshot
from doctr_schemas.primitives import RunId, Timestamp
from doctr_schemas.results import TransferFailure


class RunLogEvent(StrEnum):
    """Event names for run lifecycle logs."""

    STARTED = "run_started"
    COMPLETED = "run_completed"
    FAILED = "run_failed"
    FILE_DISCARDED = "file_discarded"
    PHASE_STARTED = "phase_started"
    PHASE_COMPLETED = "phase_completed"
    TRANSFER_COMPLETED = "transfer_completed"
    TRANSFER_FAILED = "transfer_failed"
    JOB_SUBMITTED = "job_submitted"
    JOB_STATUS = "job_status"
    CONTAINER_DELETE_FAILED = "container_delete_failed"
    SWEEP_COMPLETED = "sweep_completed"


class FilesDiscardedEvent(BaseSchema):
    """Inputs rejected because their extension is not translatable."""

    kind: Literal["files_discarded"] = Field(
        "files_discarded", description="Event kind"
    )
    run_id: RunId = Field(..., description="Run identifier")
    timestamp: Timestamp = Field(..., description="Event timestamp")
    paths: list[str] = Field(..., min_length=1, description="Discarded paths")


class UploadCompletedEvent(BaseSchema):
    """Source documents and glossaries finished uploading."""

    kind: Literal["upload_completed"] = Field(
        "upload_completed", description="Event kind"
    )
    run_id: RunId = Field(..., description="Run identifier")
    timestamp: Timestamp = Field(..., description="Event timestamp")
    count: int = Field(..., ge=0, description="Documents uploaded")
    total_bytes: int = Field(..., ge=0, description="Bytes uploaded")
    failures: list[TransferFailure] = Field(
        default_factory=list, description="Documents that failed to upload"
    )


class StatusUpdatedEvent(BaseSchema):
    """The translation job reported a new status."""

    kind: Literal["status_updated"] = Field("status_updated", description="Event kind")
    run_id: RunId = Field(..., description="Run identifier")
    timestamp: Timestamp = Field(..., description="Event timestamp")
    status: JobStatusSnapshot = Field(..., description="Job status snapshot")
    final: bool = Field(False, description="True for the terminal status")


class DownloadCompletedEvent(BaseSchema):
    """Translated documents finished downloading."""

    kind: Literal["download_completed"] = Field(
        "download_completed", description="Event kind"
    )
    run_id: RunId = Field(..., description="Run identifier")
    timestamp: Timestamp = Field(..., description="Event timestamp")
    count: int = Field(..., ge=0, description="Documents downloaded")
    total_bytes: int = Field(..., ge=0, description="Bytes downloaded")
    target_folder: str = Field(..., min_length=1, description="Download directory")
    failures: list[TransferFailure] = Field(
        default_factory=list, description="Documents that failed to download"
    )


type RunEvent = Annotated[
    FilesDiscardedEvent
    | UploadCompletedEvent
    | StatusUpdatedEvent
    | DownloadCompletedEvent,
    Field(discriminator="kind"),
]
