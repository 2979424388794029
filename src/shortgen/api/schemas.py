"""Request and response schemas for the shortgen API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from shortgen.models.media import EditInstructions


# ------------------------------------------------------------------
# Generations
# ------------------------------------------------------------------


class GenerationCreateRequest(BaseModel):
    prompt: str = Field("", description="User prompt (joined after the base prompt)")
    duration: int = Field(5, description="Clip length in seconds (2-12)")
    resolution: str = Field("1080p", description="480p, 720p or 1080p")
    aspect_ratio: str = Field("16:9", description="Output aspect ratio")
    fps: int = Field(24, description="Frame rate")
    camera_fixed: bool = Field(False, description="Lock the camera")
    seed: int | None = Field(None, description="Random seed")
    image: str | None = Field(None, description="Reference image URL or data URI")


class GenerationCreateResponse(BaseModel):
    job_id: str
    remote_id: str | None
    status: str


class GenerationStatusResponse(BaseModel):
    job_id: str
    remote_id: str | None = None
    status: str
    progress: int = 0
    message: str = ""
    output_url: str | None = None
    error: str | None = None
    created_at: datetime
    completed_at: datetime | None = None


# ------------------------------------------------------------------
# Scheduled uploads
# ------------------------------------------------------------------


class ScheduleCreateRequest(BaseModel):
    file_path: str = Field(..., description="Path to the local video file")
    scheduled_time: datetime = Field(..., description="When to upload (naive = local time)")
    title: str = Field(..., description="Video title")
    description: str = Field("", description="Video description")
    tags: str = Field("", description="Comma-separated tags")
    visibility: str = Field("private", description="public, unlisted or private")
    edit_instructions: EditInstructions | None = Field(
        None, description="Optional caption/music edits applied before upload"
    )


class ScheduleResponse(BaseModel):
    id: str
    file_name: str
    scheduled_time: datetime
    title: str
    visibility: str
    status: str
    uploaded_url: str | None = None
    error_message: str | None = None
    start_time: datetime | None = None
    completed_time: datetime | None = None
