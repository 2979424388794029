"""Tests for ScheduledUploadDispatcher."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from shortgen.errors import AuthError, MediaProcessingError, UploadFailure
from shortgen.jobs.dispatcher import ScheduledUploadDispatcher
from shortgen.jobs.store import InMemoryScheduleStore
from shortgen.models.media import EditInstructions
from shortgen.models.schedule import ScheduledUploadItem, ScheduleStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _item(tmp_path: Path, name: str, offset: timedelta, **fields) -> ScheduledUploadItem:
    path = tmp_path / name
    path.write_bytes(b"\x00" * 16)
    return ScheduledUploadItem(
        file_name=name,
        file_path=str(path),
        scheduled_time=NOW + offset,
        title=f"Title {name}",
        **fields,
    )


@pytest.fixture
def pipeline() -> MagicMock:
    mock = MagicMock()
    mock.upload = AsyncMock(return_value="https://www.youtube.com/watch?v=vid1")
    return mock


@pytest.fixture
def dispatcher(pipeline, fake_auth) -> ScheduledUploadDispatcher:
    return ScheduledUploadDispatcher(pipeline, authenticator=fake_auth, now=lambda: NOW)


class TestQueueAccess:
    def test_enqueue_sets_waiting(self, dispatcher, tmp_path) -> None:
        item = _item(tmp_path, "a.mp4", timedelta(hours=1))
        item.status = ScheduleStatus.FAILED
        dispatcher.enqueue(item)

        assert dispatcher.count() == 1
        [listed] = dispatcher.list_all()
        assert listed.id == item.id
        assert listed.status == ScheduleStatus.WAITING

    def test_list_all_is_a_snapshot(self, dispatcher, tmp_path) -> None:
        dispatcher.enqueue(_item(tmp_path, "a.mp4", timedelta(hours=1)))
        snapshot = dispatcher.list_all()
        snapshot[0].title = "changed"
        assert dispatcher.list_all()[0].title == "Title a.mp4"

    def test_get_unknown(self, dispatcher) -> None:
        assert dispatcher.get("missing") is None

    def test_naive_time_is_made_aware(self, tmp_path) -> None:
        item = ScheduledUploadItem(
            file_path=str(tmp_path / "a.mp4"), scheduled_time=datetime(2026, 3, 1, 12, 0)
        )
        assert item.scheduled_time.tzinfo is not None


class TestTick:
    @pytest.mark.asyncio
    async def test_not_due_stays_queued(self, dispatcher, pipeline, tmp_path) -> None:
        item = dispatcher.enqueue(_item(tmp_path, "later.mp4", timedelta(hours=1)))

        assert await dispatcher.tick() == 0

        pipeline.upload.assert_not_called()
        assert dispatcher.count() == 1
        assert dispatcher.get(item.id).status == ScheduleStatus.WAITING
        assert Path(item.file_path).exists()

    @pytest.mark.asyncio
    async def test_due_item_uploads_and_deletes_file(self, dispatcher, pipeline, fake_auth, tmp_path) -> None:
        item = dispatcher.enqueue(_item(tmp_path, "now.mp4", timedelta(minutes=-1), tags="a,b"))

        assert await dispatcher.tick() == 1

        record = dispatcher.get(item.id)
        assert record.status == ScheduleStatus.COMPLETED
        assert record.uploaded_url == "https://www.youtube.com/watch?v=vid1"
        assert record.start_time == NOW
        assert record.completed_time == NOW
        assert not Path(item.file_path).exists()
        assert dispatcher.count() == 0
        fake_auth.authenticate.assert_awaited()

        job = pipeline.upload.await_args.args[0]
        assert job.source_path == Path(item.file_path)
        assert job.metadata.title == "Title now.mp4"
        assert job.metadata.tags == "a,b"

    @pytest.mark.asyncio
    async def test_failure_does_not_block_next_item(self, pipeline, fake_auth, tmp_path) -> None:
        media = MagicMock()
        media.process = AsyncMock(side_effect=MediaProcessingError("ffmpeg failed"))
        dispatcher = ScheduledUploadDispatcher(
            pipeline, authenticator=fake_auth, media_processor=media, now=lambda: NOW
        )
        first = dispatcher.enqueue(
            _item(
                tmp_path,
                "first.mp4",
                timedelta(minutes=-2),
                edit_instructions=EditInstructions(caption_text="hello"),
            )
        )
        second = dispatcher.enqueue(_item(tmp_path, "second.mp4", timedelta(minutes=-1)))

        assert await dispatcher.tick() == 2

        failed = dispatcher.get(first.id)
        assert failed.status == ScheduleStatus.FAILED
        assert failed.error_message == "ffmpeg failed"
        assert failed.completed_time == NOW
        assert dispatcher.get(second.id).status == ScheduleStatus.COMPLETED
        assert pipeline.upload.await_count == 1
        assert not Path(first.file_path).exists()
        assert not Path(second.file_path).exists()

        assert dispatcher.list_all() == []
        assert {i.id for i in dispatcher.list_finished()} == {first.id, second.id}

    @pytest.mark.asyncio
    async def test_failed_item_is_not_retried(self, dispatcher, pipeline, tmp_path) -> None:
        pipeline.upload.side_effect = UploadFailure("Upload failed: quota")
        item = dispatcher.enqueue(_item(tmp_path, "a.mp4", timedelta(minutes=-1)))

        await dispatcher.tick()
        await dispatcher.tick()

        assert pipeline.upload.await_count == 1
        assert dispatcher.get(item.id).status == ScheduleStatus.FAILED
        assert dispatcher.get(item.id).error_message == "Upload failed: quota"

    @pytest.mark.asyncio
    async def test_auth_failure_marks_failed(self, dispatcher, pipeline, fake_auth, tmp_path) -> None:
        fake_auth.authenticate.side_effect = AuthError("No authorized YouTube account")
        item = dispatcher.enqueue(_item(tmp_path, "a.mp4", timedelta(minutes=-1)))

        await dispatcher.tick()

        assert dispatcher.get(item.id).status == ScheduleStatus.FAILED
        pipeline.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_processed_file_is_uploaded_and_deleted(self, pipeline, fake_auth, tmp_path) -> None:
        edited = tmp_path / "a_edited.mp4"
        edited.write_bytes(b"\x01")
        media = MagicMock()
        media.process = AsyncMock(return_value=edited)
        dispatcher = ScheduledUploadDispatcher(
            pipeline, authenticator=fake_auth, media_processor=media, now=lambda: NOW
        )
        item = dispatcher.enqueue(
            _item(
                tmp_path,
                "a.mp4",
                timedelta(minutes=-1),
                edit_instructions=EditInstructions(caption_text="hi"),
            )
        )

        await dispatcher.tick()

        assert pipeline.upload.await_args.args[0].source_path == edited
        assert dispatcher.get(item.id).status == ScheduleStatus.COMPLETED
        assert not edited.exists()
        assert not Path(item.file_path).exists()

    @pytest.mark.asyncio
    async def test_empty_edits_skip_processing(self, pipeline, fake_auth, tmp_path) -> None:
        media = MagicMock()
        media.process = AsyncMock()
        dispatcher = ScheduledUploadDispatcher(
            pipeline, authenticator=fake_auth, media_processor=media, now=lambda: NOW
        )
        dispatcher.enqueue(
            _item(tmp_path, "a.mp4", timedelta(minutes=-1), edit_instructions=EditInstructions())
        )

        await dispatcher.tick()

        media.process.assert_not_called()
        pipeline.upload.assert_awaited_once()


class FlakyStore(InMemoryScheduleStore):
    """Store whose first drain raises."""

    def __init__(self) -> None:
        super().__init__()
        self.drains = 0

    def drain(self):
        self.drains += 1
        if self.drains == 1:
            raise RuntimeError("store unavailable")
        return super().drain()


class TestLoop:
    @pytest.mark.asyncio
    async def test_loop_survives_tick_errors(self, pipeline, fake_auth) -> None:
        store = FlakyStore()

        async def fast_sleep(_delay: float) -> None:
            await asyncio.sleep(0)

        dispatcher = ScheduledUploadDispatcher(
            pipeline, authenticator=fake_auth, store=store, now=lambda: NOW, sleep=fast_sleep
        )

        await dispatcher.start()
        assert dispatcher.running
        for _ in range(100):
            if store.drains >= 3:
                break
            await asyncio.sleep(0)
        await dispatcher.stop()

        assert store.drains >= 3
        assert not dispatcher.running

    @pytest.mark.asyncio
    async def test_stop_interrupts_interval_wait(self, pipeline) -> None:
        dispatcher = ScheduledUploadDispatcher(pipeline, interval=3600, now=lambda: NOW)
        await dispatcher.start()
        await asyncio.sleep(0)
        await asyncio.wait_for(dispatcher.stop(), timeout=1.0)
        assert not dispatcher.running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, dispatcher) -> None:
        await dispatcher.stop()

    @pytest.mark.asyncio
    async def test_stop_during_upload_fails_item_and_keeps_file(self, pipeline, fake_auth, tmp_path) -> None:
        started = asyncio.Event()

        async def slow_upload(job, on_progress=None):
            started.set()
            await asyncio.sleep(60)
            return "https://www.youtube.com/watch?v=never"

        pipeline.upload.side_effect = slow_upload
        dispatcher = ScheduledUploadDispatcher(
            pipeline, authenticator=fake_auth, interval=3600, shutdown_timeout=0.05, now=lambda: NOW
        )
        item = dispatcher.enqueue(_item(tmp_path, "long.mp4", timedelta(minutes=-1)))

        await dispatcher.start()
        await asyncio.wait_for(started.wait(), timeout=1.0)
        assert dispatcher.get(item.id).status == ScheduleStatus.UPLOADING

        await asyncio.wait_for(dispatcher.stop(), timeout=1.0)

        stored = dispatcher.get(item.id)
        assert stored.status == ScheduleStatus.FAILED
        assert stored.error_message == "Canceled during shutdown"
        assert stored.completed_time == NOW
        assert Path(item.file_path).exists()
        assert not dispatcher.running
