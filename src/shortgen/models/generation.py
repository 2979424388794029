"""Video generation data models."""

from typing import Any

from pydantic import BaseModel, Field

from shortgen.models.status import JobStatus

# Values accepted by the video model; anything else is rejected before submit.
ALLOWED_RESOLUTIONS = ("480p", "720p", "1080p")
ALLOWED_ASPECT_RATIOS = ("16:9", "4:3", "1:1", "3:4", "9:16", "21:9", "9:21")
ALLOWED_FPS = (24,)
MIN_DURATION_SECONDS = 2
MAX_DURATION_SECONDS = 12


class GenerationRequest(BaseModel):
    """Parameters for one text/image-to-video request."""

    prompt: str = Field("", description="Text prompt")
    duration: int = Field(5, description="Clip length in seconds")
    resolution: str = Field("1080p", description="Output resolution")
    aspect_ratio: str = Field("16:9", description="Output aspect ratio")
    fps: int = Field(24, description="Frame rate")
    camera_fixed: bool = Field(False, description="Lock the camera")
    seed: int | None = Field(None, description="Random seed")
    image: str | None = Field(None, description="Reference image URL or data URI")

    def to_input(self) -> dict[str, Any]:
        """Build the provider's `input` object, omitting unset optionals."""
        payload: dict[str, Any] = {
            "prompt": self.prompt,
            "duration": self.duration,
            "resolution": self.resolution,
            "aspect_ratio": self.aspect_ratio,
            "fps": self.fps,
            "camera_fixed": self.camera_fixed,
        }
        if self.image:
            payload["image"] = self.image
        if self.seed is not None:
            payload["seed"] = self.seed
        return payload


class GenerationOutput(BaseModel):
    """Remote asset produced by a succeeded generation."""

    reference: str = Field(..., description="Output URL or asset id")
    raw: Any = Field(None, description="Provider output as returned")

    @classmethod
    def from_provider(cls, output: Any) -> "GenerationOutput | None":
        """Normalize the provider's output field (string, list or object)."""
        if output is None:
            return None
        if isinstance(output, str):
            return cls(reference=output, raw=output) if output else None
        if isinstance(output, list):
            for item in output:
                if isinstance(item, str) and item:
                    return cls(reference=item, raw=output)
            return None
        if isinstance(output, dict):
            ref = output.get("url") or output.get("id")
            return cls(reference=str(ref), raw=output) if ref else None
        return cls(reference=str(output), raw=output)


class JobHandle(BaseModel):
    """Handle returned by submit(); identifies an accepted remote job."""

    id: str
    request: GenerationRequest


class GenerationJob(BaseModel):
    """Remote generation job as tracked by the poller."""

    id: str | None = None
    request: GenerationRequest
    status: JobStatus = JobStatus.PENDING
    output: GenerationOutput | None = None
    error: str | None = None


class PredictionState(BaseModel):
    """One status observation from the provider."""

    id: str
    status: str = "unknown"
    output: Any = None
    error: str | None = None
    logs: str | None = None


class AccountInfo(BaseModel):
    """Provider account summary."""

    username: str = ""
    type: str = ""
    credit_balance: float | None = None
