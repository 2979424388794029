"""Status vocabulary shared by every poller."""

from collections.abc import Callable
from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class JobStatus(str, Enum):
    """Lifecycle status of a remote job."""

    PENDING = "pending"
    STARTING = "starting"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        """True if no further transition occurs from this status."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELED, JobStatus.TIMED_OUT}
)


class ProgressReport(BaseModel):
    """A single progress observation for one job."""

    percentage: int = Field(..., ge=0, le=100, description="0-100")
    status: JobStatus = Field(JobStatus.RUNNING, description="Job status at report time")
    status_label: str = Field("", description="Human-readable status")
    elapsed: timedelta = Field(default_factory=timedelta, description="Time since job start")
    estimated_remaining: timedelta | None = Field(
        None, description="Remaining time estimate; None means unknown"
    )
    result_token: str | None = Field(None, description="Remote asset id once known")

    @model_validator(mode="after")
    def _complete_only_when_succeeded(self) -> "ProgressReport":
        if self.percentage == 100 and self.status != JobStatus.SUCCEEDED:
            raise ValueError("percentage=100 is reserved for succeeded jobs")
        return self

    @property
    def eta_text(self) -> str:
        """Remaining time as display text."""
        if self.estimated_remaining is None:
            return "unknown"
        seconds = int(self.estimated_remaining.total_seconds())
        if seconds >= 60:
            return f"about {seconds // 60}m {seconds % 60}s"
        return f"about {seconds}s"


ProgressCallback = Callable[[ProgressReport], None]
