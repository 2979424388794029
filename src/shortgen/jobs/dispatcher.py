"""Background dispatcher for scheduled uploads."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from shortgen.errors import MediaProcessingError
from shortgen.jobs.store import InMemoryScheduleStore, ScheduleStore
from shortgen.models.schedule import ScheduledUploadItem, ScheduleStatus
from shortgen.models.status import ProgressReport
from shortgen.polling import Sleep
from shortgen.services.interfaces import IAuthenticator, IMediaProcessor
from shortgen.services.upload import UploadPipeline

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _delete_quietly(path: Path | None) -> None:
    """Best-effort file removal; failures are only logged."""
    if path is None:
        return
    try:
        if path.exists():
            path.unlink()
            logger.info("Deleted uploaded file: %s", path)
    except OSError as e:
        logger.warning("Could not delete file %s: %s", path, e)


class ScheduledUploadDispatcher:
    """Holds scheduled uploads and releases them at their due time.

    A single background loop wakes every ``interval`` seconds. Each tick
    drains the queue, puts not-yet-due items back, and uploads the due ones
    one after another. An item that has been taken for upload is never put
    back, whatever the outcome; there is no automatic retry.
    """

    def __init__(
        self,
        pipeline: UploadPipeline,
        authenticator: IAuthenticator | None = None,
        media_processor: IMediaProcessor | None = None,
        store: ScheduleStore | None = None,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        shutdown_timeout: float = 5.0,
        now: Callable[[], datetime] = _utcnow,
        sleep: Sleep | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._authenticator = authenticator
        self._media = media_processor
        self._store = store or InMemoryScheduleStore()
        self.interval = interval
        self.shutdown_timeout = shutdown_timeout
        self._now = now
        self._sleep = sleep
        self._records: dict[str, ScheduledUploadItem] = {}
        self._task: asyncio.Task | None = None
        self._stopping: asyncio.Event | None = None

    # ------------------------------------------------------------------
    # Queue access
    # ------------------------------------------------------------------

    def enqueue(self, item: ScheduledUploadItem) -> ScheduledUploadItem:
        """Queue an item for its scheduled time."""
        item.status = ScheduleStatus.WAITING
        self._records[item.id] = item
        self._store.append(item)
        logger.info("Scheduled upload added: %s at %s", item.file_name, item.scheduled_time)
        return item

    def list_all(self) -> list[ScheduledUploadItem]:
        """Snapshot of the items still waiting in the queue."""
        return [item.model_copy() for item in self._store.snapshot()]

    def count(self) -> int:
        return self._store.count()

    def get(self, item_id: str) -> ScheduledUploadItem | None:
        """Snapshot of any item ever enqueued, including finished ones."""
        item = self._records.get(item_id)
        return item.model_copy() if item else None

    def list_finished(self) -> list[ScheduledUploadItem]:
        """Completed and failed items, most recently finished first."""
        finished = [i for i in self._records.values() if i.status.is_terminal]
        finished.sort(key=lambda i: i.completed_time or i.scheduled_time, reverse=True)
        return [item.model_copy() for item in finished]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop."""
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it.

        An upload still running after ``shutdown_timeout`` seconds is
        canceled and its item marked failed; its source file is kept.
        """
        if self._task is None:
            return
        if self._stopping is not None:
            self._stopping.set()
        try:
            await asyncio.wait_for(self._task, timeout=self.shutdown_timeout)
        except asyncio.TimeoutError:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _run(self) -> None:
        logger.info("Scheduled upload dispatcher started")
        assert self._stopping is not None
        while not self._stopping.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("Scheduled upload tick failed")

            if self._sleep is not None:
                await self._sleep(self.interval)
            else:
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        logger.info("Scheduled upload dispatcher stopped")

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self) -> int:
        """Run one pass over the queue. Returns the number of items attempted."""
        now = self._now()
        due: list[ScheduledUploadItem] = []
        later: list[ScheduledUploadItem] = []

        for item in self._store.drain():
            if item.is_due(now):
                due.append(item)
                logger.info("Upload due: %s", item.file_name)
            elif item.status == ScheduleStatus.WAITING:
                later.append(item)
            # anything else is finished and drops out of the queue

        for item in later:
            self._store.append(item)

        for item in due:
            try:
                await self._process(item)
            except Exception:
                logger.exception("Unexpected error processing %s", item.file_name)

        remaining = self._store.count()
        if remaining:
            logger.info("Scheduled uploads waiting: %d", remaining)
        return len(due)

    async def _process(self, item: ScheduledUploadItem) -> None:
        logger.info("Upload starting: %s", item.file_name)
        item.status = ScheduleStatus.UPLOADING
        item.start_time = self._now()

        source = Path(item.file_path)
        processed: Path | None = None
        interrupted = False

        def log_progress(report: ProgressReport) -> None:
            logger.debug("%s: %d%% - %s", item.file_name, report.percentage, report.status_label)

        try:
            if self._authenticator is not None:
                await self._authenticator.authenticate()

            if item.edit_instructions is not None and not item.edit_instructions.is_empty:
                if self._media is None:
                    raise MediaProcessingError("No media processor configured")
                processed = await self._media.process(source, item.edit_instructions)

            url = await self._pipeline.upload(
                item.to_upload_job(processed or source),
                on_progress=log_progress,
            )
        except asyncio.CancelledError:
            interrupted = True
            item.status = ScheduleStatus.FAILED
            item.error_message = "Canceled during shutdown"
            item.completed_time = self._now()
            logger.warning("Upload interrupted: %s (file kept at %s)", item.file_name, source)
            raise
        except Exception as e:
            item.status = ScheduleStatus.FAILED
            item.error_message = str(e) or type(e).__name__
            item.completed_time = self._now()
            logger.error("Upload failed: %s - %s", item.file_name, item.error_message)
        else:
            item.status = ScheduleStatus.COMPLETED
            item.uploaded_url = url
            item.completed_time = self._now()
            logger.info("Upload complete: %s -> %s", item.file_name, url)
        finally:
            if not interrupted:
                _delete_quietly(source)
            if processed is not None and processed != source:
                _delete_quietly(processed)
