"""Configuration management for shortgen."""

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from shortgen.errors import ValidationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Directories
    output_dir: Path = Path("./outputs")
    temp_dir: Path = Path("./temp")

    # Replicate
    replicate_api_key: str = ""
    replicate_base_url: str = "https://api.replicate.com/v1"
    replicate_model: str = "bytedance/seedance-1-pro"
    base_prompt: str = ""

    # YouTube
    youtube_client_id: str = ""
    youtube_client_secret: str = ""
    youtube_refresh_token: str = ""

    # Upload defaults
    default_video_title: str = "AI Generated Video"
    default_video_description: str = "Generated using shortgen"
    default_video_tags: str = "AI,Video,Generated,Shorts"
    default_visibility: str = "private"

    # Polling
    http_timeout: float = 30.0
    generation_quick_checks: int = 10
    generation_max_attempts: int = 240
    processing_max_attempts: int = 24
    dispatch_interval_seconds: float = 60.0
    max_concurrent_generations: int = 4

    # FFmpeg
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.temp_dir.mkdir(parents=True, exist_ok=True)

    def require_replicate_api_key(self) -> str:
        """Return the Replicate API key or raise ValidationError."""
        if not self.replicate_api_key:
            raise ValidationError("Replicate API key is not configured (REPLICATE_API_KEY)")
        return self.replicate_api_key

    def require_youtube_credentials(self) -> tuple[str, str]:
        """Return (client_id, client_secret) or raise ValidationError."""
        if not self.youtube_client_id or not self.youtube_client_secret:
            raise ValidationError(
                "YouTube client id and secret are not configured "
                "(YOUTUBE_CLIENT_ID / YOUTUBE_CLIENT_SECRET)"
            )
        return self.youtube_client_id, self.youtube_client_secret

    def combine_prompts(self, user_prompt: str | None) -> str:
        """Join the configured base prompt and a user prompt.

        Either part may be empty; when both are present they are joined
        with ", " (base first).
        """
        base = self.base_prompt.strip()
        user = (user_prompt or "").strip()

        if not base and not user:
            logger.warning("Both base prompt and user prompt are empty")
            return ""
        if not user:
            return base
        if not base:
            return user
        return f"{base}, {user}"


# Global settings instance
settings = Settings()
