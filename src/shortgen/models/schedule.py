"""Scheduled upload models."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from shortgen.models.media import EditInstructions
from shortgen.models.upload import UploadJob, VideoMetadata


class ScheduleStatus(str, Enum):
    """Lifecycle of a scheduled upload."""

    WAITING = "waiting"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScheduleStatus.COMPLETED, ScheduleStatus.FAILED)


class ScheduledUploadItem(BaseModel):
    """An upload deferred to a wall-clock time."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    file_name: str = ""
    file_path: str
    scheduled_time: datetime
    title: str = ""
    description: str = ""
    tags: str = ""
    visibility: str = "private"
    edit_instructions: EditInstructions | None = None
    status: ScheduleStatus = ScheduleStatus.WAITING
    uploaded_url: str | None = None
    error_message: str | None = None
    start_time: datetime | None = None
    completed_time: datetime | None = None

    @field_validator("scheduled_time")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        # Naive times are taken as local wall-clock time.
        if value.tzinfo is None:
            return value.astimezone()
        return value

    def is_due(self, now: datetime) -> bool:
        """True if the item is waiting and its due time has passed."""
        return self.status == ScheduleStatus.WAITING and self.scheduled_time <= now

    def to_upload_job(self, source_path: Path | None = None) -> UploadJob:
        """Build the UploadJob for one attempt."""
        return UploadJob(
            source_path=source_path or Path(self.file_path),
            metadata=VideoMetadata(
                title=self.title,
                description=self.description,
                tags=self.tags,
                visibility=self.visibility,
            ),
        )
