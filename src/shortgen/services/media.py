"""Media post-processing using FFmpeg."""

import asyncio
import logging
import random
import shutil
import subprocess
import tempfile
from pathlib import Path

from shortgen.errors import MediaProcessingError
from shortgen.models.media import EditInstructions

logger = logging.getLogger(__name__)

RANDOM_FONT_SIZES = ("60", "80", "120")
RANDOM_FONT_COLORS = ("white", "yellow", "red", "black")
RANDOM_POSITIONS = ("top", "center", "bottom")

CAPTION_Y = {
    "top": "120",
    "center": "h/2-text_h/2",
    "bottom": "h-120",
}

# Keep at least this much music after the random start offset.
_MUSIC_TAIL_SECONDS = 15


def _sanitize_caption(text: str) -> str:
    """Strip characters that break the drawtext filter."""
    for ch in ("'", '"', ":", "\\"):
        text = text.replace(ch, "")
    return text


class FFmpegMediaProcessor:
    """Burns captions and mixes background music into a video.

    Steps run in order (caption, then music), each writing a temp file that
    feeds the next; the final result is copied to the output path.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        output_dir: Path | None = None,
        temp_dir: Path | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.output_dir = Path(output_dir) if output_dir else None
        self.temp_dir = Path(temp_dir) if temp_dir else None
        self._rng = rng or random.Random()

    def is_available(self) -> bool:
        """Check if ffmpeg is installed."""
        return shutil.which(self.ffmpeg_path) is not None

    def output_path_for(self, input_path: Path) -> Path:
        directory = self.output_dir or input_path.parent
        return directory / f"{input_path.stem}_edited.mp4"

    async def process(self, input_path: Path, instructions: EditInstructions) -> Path:
        """Apply the edits and return the output path.

        Raises:
            MediaProcessingError: If ffmpeg is missing or a required step fails.
        """
        input_path = Path(input_path)
        if not self.is_available():
            raise MediaProcessingError(f"ffmpeg not found: {self.ffmpeg_path}")
        if not input_path.exists():
            raise MediaProcessingError(f"Input file not found: {input_path}")

        output_path = self.output_path_for(input_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if self.temp_dir is not None:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
        temp_files: list[Path] = []
        current = input_path

        try:
            if instructions.caption_text:
                caption_out = self._temp_path()
                temp_files.append(caption_out)
                await self.add_caption(current, caption_out, instructions)
                current = caption_out

            music = instructions.background_music_path
            if music and Path(music).exists():
                music_out = self._temp_path()
                temp_files.append(music_out)
                try:
                    await self.add_background_music(current, music_out, Path(music), instructions.music_volume)
                    current = music_out
                except MediaProcessingError as e:
                    logger.warning("Background music skipped: %s", e)
            elif music:
                logger.warning("Background music file not found: %s", music)

            await asyncio.to_thread(shutil.copyfile, current, output_path)
            logger.info("Post-processing complete: %s", output_path)
            return output_path
        finally:
            for temp in temp_files:
                try:
                    temp.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Could not delete temp file %s: %s", temp, e)

    async def add_caption(self, input_path: Path, output_path: Path, instructions: EditInstructions) -> Path:
        """Burn a caption into the video with drawtext."""
        font_size = instructions.font_size
        if font_size == "random":
            font_size = self._rng.choice(RANDOM_FONT_SIZES)
        font_color = instructions.font_color
        if font_color == "random":
            font_color = self._rng.choice(RANDOM_FONT_COLORS)
        position = instructions.caption_position.lower()
        if position == "random":
            position = self._rng.choice(RANDOM_POSITIONS)
        y = CAPTION_Y.get(position, CAPTION_Y["bottom"])

        text = _sanitize_caption(instructions.caption_text)
        drawtext = (
            f"drawtext=text='{text}':fontsize={font_size}:fontcolor={font_color}:"
            f"x=(w-text_w)/2:y={y}:"
            "borderw=3:bordercolor=black:shadowx=2:shadowy=2:shadowcolor=black@0.5"
        )
        logger.debug("Caption: position=%s size=%s color=%s", position, font_size, font_color)

        cmd = [
            self.ffmpeg_path,
            "-y",
            "-i", str(input_path),
            "-vf", drawtext,
            "-c:a", "copy",
            "-preset", "ultrafast",
            "-crf", "23",
            str(output_path),
        ]
        await self._run(cmd)
        return output_path

    async def add_background_music(
        self,
        input_path: Path,
        output_path: Path,
        music_path: Path,
        volume: float,
    ) -> Path:
        """Replace the audio track with music starting at a random offset."""
        duration = await self.get_duration_seconds(music_path)
        max_start = max(0, int(duration) - _MUSIC_TAIL_SECONDS)
        start = self._rng.randrange(0, max(1, max_start))
        logger.debug("Background music %s from %ds", music_path.name, start)

        cmd = [
            self.ffmpeg_path,
            "-y",
            "-i", str(input_path),
            "-ss", str(start),
            "-i", str(music_path),
            "-c:v", "copy",
            "-c:a", "aac",
            "-filter:a", f"volume={volume:.1f}",
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-shortest",
            str(output_path),
        ]
        await self._run(cmd)
        return output_path

    async def get_duration_seconds(self, path: Path) -> float:
        """Duration of a media file via ffprobe (0.0 if unknown)."""
        cmd = [
            self.ffprobe_path,
            "-v", "quiet",
            "-show_entries", "format=duration",
            "-of", "csv=p=0",
            str(path),
        ]
        result = await asyncio.to_thread(subprocess.run, cmd, capture_output=True, text=True)
        if result.returncode != 0:
            return 0.0
        try:
            return float(result.stdout.strip())
        except ValueError:
            return 0.0

    async def _run(self, cmd: list[str]) -> None:
        result = await asyncio.to_thread(
            subprocess.run, cmd, capture_output=True, text=True, timeout=600
        )
        if result.returncode != 0:
            raise MediaProcessingError(f"ffmpeg failed: {result.stderr[-1000:]}")

    def _temp_path(self) -> Path:
        handle = tempfile.NamedTemporaryFile(suffix=".mp4", dir=self.temp_dir, delete=False)
        handle.close()
        return Path(handle.name)
