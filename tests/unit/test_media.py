"""Tests for FFmpegMediaProcessor (ffmpeg itself is mocked)."""

from __future__ import annotations

import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from shortgen.errors import MediaProcessingError
from shortgen.models.media import EditInstructions
from shortgen.services.media import RANDOM_FONT_COLORS, FFmpegMediaProcessor


@pytest.fixture
def video(tmp_path: Path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00" * 64)
    return path


@pytest.fixture
def processor(tmp_path: Path, monkeypatch) -> FFmpegMediaProcessor:
    proc = FFmpegMediaProcessor(output_dir=tmp_path / "out", rng=random.Random(7))
    monkeypatch.setattr(proc, "is_available", lambda: True)
    monkeypatch.setattr(proc, "_run", AsyncMock())
    return proc


class TestFFmpegMediaProcessor:
    def test_output_path(self, tmp_path: Path) -> None:
        proc = FFmpegMediaProcessor(output_dir=tmp_path)
        assert proc.output_path_for(Path("/videos/a.mov")) == tmp_path / "a_edited.mp4"

    @pytest.mark.asyncio
    async def test_missing_ffmpeg(self, video: Path) -> None:
        proc = FFmpegMediaProcessor(ffmpeg_path="ffmpeg-not-installed-here")
        with pytest.raises(MediaProcessingError, match="ffmpeg not found"):
            await proc.process(video, EditInstructions(caption_text="hi"))

    @pytest.mark.asyncio
    async def test_missing_input(self, processor, tmp_path: Path) -> None:
        with pytest.raises(MediaProcessingError, match="Input file not found"):
            await processor.process(tmp_path / "nope.mp4", EditInstructions(caption_text="hi"))

    @pytest.mark.asyncio
    async def test_caption(self, processor, video: Path) -> None:
        output = await processor.process(
            video, EditInstructions(caption_text="Hello: 'world'", font_color="random")
        )

        assert output == processor.output_path_for(video)
        assert output.exists()
        [call] = processor._run.await_args_list
        cmd = call.args[0]
        drawtext = cmd[cmd.index("-vf") + 1]
        assert drawtext.startswith("drawtext=text='Hello world'")
        assert "y=h-120" in drawtext
        assert any(f"fontcolor={c}:" in drawtext for c in RANDOM_FONT_COLORS)

    @pytest.mark.asyncio
    async def test_intermediates_go_to_temp_dir(self, tmp_path: Path, video: Path, monkeypatch) -> None:
        temp_dir = tmp_path / "scratch"
        proc = FFmpegMediaProcessor(output_dir=tmp_path / "out", temp_dir=temp_dir)
        monkeypatch.setattr(proc, "is_available", lambda: True)
        monkeypatch.setattr(proc, "_run", AsyncMock())

        output = await proc.process(video, EditInstructions(caption_text="hi"))

        [call] = proc._run.await_args_list
        assert Path(call.args[0][-1]).parent == temp_dir
        assert output.parent == tmp_path / "out"
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_music_is_skipped(self, processor, video: Path) -> None:
        output = await processor.process(
            video, EditInstructions(background_music_path="/no/such/song.mp3")
        )
        assert output.read_bytes() == video.read_bytes()
        processor._run.assert_not_called()

    @pytest.mark.asyncio
    async def test_music_failure_keeps_captioned_video(self, processor, video: Path, tmp_path: Path) -> None:
        song = tmp_path / "song.mp3"
        song.write_bytes(b"\x01")
        processor.get_duration_seconds = AsyncMock(return_value=60.0)
        processor._run.side_effect = [None, MediaProcessingError("ffmpeg failed: codec")]

        output = await processor.process(
            video,
            EditInstructions(caption_text="hi", background_music_path=str(song)),
        )

        assert output.exists()
        assert processor._run.await_count == 2
