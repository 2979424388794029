"""Data models for shortgen."""

from shortgen.models.generation import (
    AccountInfo,
    GenerationJob,
    GenerationOutput,
    GenerationRequest,
    JobHandle,
    PredictionState,
)
from shortgen.models.media import EditInstructions
from shortgen.models.schedule import ScheduledUploadItem, ScheduleStatus
from shortgen.models.status import JobStatus, ProgressCallback, ProgressReport
from shortgen.models.upload import (
    ChannelInfo,
    TransferResult,
    TransferStatus,
    UploadJob,
    VideoMetadata,
    VideoSummary,
    Visibility,
)

__all__ = [
    # Status
    "JobStatus",
    "ProgressReport",
    "ProgressCallback",
    # Generation
    "GenerationRequest",
    "GenerationOutput",
    "GenerationJob",
    "JobHandle",
    "PredictionState",
    "AccountInfo",
    # Upload
    "Visibility",
    "VideoMetadata",
    "UploadJob",
    "TransferStatus",
    "TransferResult",
    "ChannelInfo",
    "VideoSummary",
    # Media
    "EditInstructions",
    # Schedule
    "ScheduleStatus",
    "ScheduledUploadItem",
]
