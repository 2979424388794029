"""Media post-processing models."""

from pydantic import BaseModel, Field


class EditInstructions(BaseModel):
    """Edits applied by the media processor before upload.

    `font_size`, `font_color` and `caption_position` accept "random".
    """

    caption_text: str = Field("", description="Caption burned into the video")
    font_size: str = Field("48", description="Font size or 'random'")
    font_color: str = Field("white", description="Font colour or 'random'")
    caption_position: str = Field("bottom", description="top/center/bottom or 'random'")
    background_music_path: str = Field("", description="Music file mixed in")
    music_volume: float = Field(0.3, ge=0.0, le=1.0, description="Music volume")

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to apply."""
        return not self.caption_text and not self.background_music_path
