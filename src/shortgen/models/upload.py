"""Upload-related data models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class Visibility(str, Enum):
    """Visibility values understood by the video host."""

    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


class VideoMetadata(BaseModel):
    """Caller-facing metadata for an upload."""

    title: str = Field("", description="Video title")
    description: str = Field("", description="Video description")
    tags: str = Field("", description="Comma-separated tags")
    visibility: str = Field("private", description="Visibility label")


class UploadJob(BaseModel):
    """One upload call. Not persisted."""

    source_path: Path
    metadata: VideoMetadata = Field(default_factory=VideoMetadata)
    validated: bool = False


class TransferStatus(str, Enum):
    """Outcome of a chunked transfer."""

    COMPLETED = "completed"
    FAILED = "failed"
    INCOMPLETE = "incomplete"


class TransferResult(BaseModel):
    """What the transfer layer reports once it stops."""

    status: TransferStatus
    resource_id: str | None = None
    error: str | None = None
    bytes_sent: int = 0


class ChannelInfo(BaseModel):
    """Authenticated channel summary."""

    channel_id: str
    title: str
    channel_url: str
    thumbnail_url: str | None = None
    subscriber_count: int = 0
    video_count: int = 0


class VideoSummary(BaseModel):
    """Entry from the channel's uploads playlist."""

    video_id: str
    title: str = ""
    description: str = ""
    published_at: str | None = None
