"""Processing poller: best-effort wait for host-side processing of an upload."""

import asyncio
import logging
import time
from datetime import timedelta

from shortgen.errors import RemoteFailure
from shortgen.models.status import JobStatus, ProgressCallback, ProgressReport
from shortgen.polling import Clock, IntervalPolicy, PollLoop, Sleep
from shortgen.services.interfaces import IVideoStatusSource

logger = logging.getLogger(__name__)

READY_STATUSES = frozenset({"processed", "uploaded"})
FAILED_STATUSES = frozenset({"failed", "rejected"})

PROCESSING_INTERVAL_SECONDS = 5.0
PROCESSING_MAX_ATTEMPTS = 24


class ProcessingPoller:
    """Polls a video's upload status until the host reports it ready.

    The wait is soft: running out of attempts or being canceled returns
    False (the upload itself already succeeded). Only a failed/rejected
    status raises.
    """

    def __init__(
        self,
        source: IVideoStatusSource,
        interval: float = PROCESSING_INTERVAL_SECONDS,
        max_attempts: int = PROCESSING_MAX_ATTEMPTS,
        sleep: Sleep | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._source = source
        self.policy = IntervalPolicy.fixed(interval, max_attempts)
        self._sleep = sleep
        self._clock = clock

    async def wait_for_processing(
        self,
        video_id: str,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
        elapsed_before: timedelta = timedelta(0),
    ) -> bool:
        """Return True once processing is confirmed, False if it could not be.

        Progress reports count ``elapsed_before`` (time already spent on the
        upload) plus the time spent waiting here.

        Raises:
            RemoteFailure: The host reported the video failed or rejected.
        """
        loop = PollLoop(self.policy, cancel=cancel, sleep=self._sleep, clock=self._clock)
        max_attempts = self.policy.max_attempts

        while loop.should_continue():
            attempt = loop.attempt
            try:
                upload_status = await self._source.get_upload_status(video_id)
            except Exception as e:
                logger.warning(
                    "Processing status check failed for %s (%d/%d): %s",
                    video_id,
                    attempt + 1,
                    max_attempts,
                    e,
                )
            else:
                logger.debug(
                    "Processing status %s (%d/%d): %s",
                    video_id,
                    attempt + 1,
                    max_attempts,
                    upload_status,
                )
                if upload_status in READY_STATUSES:
                    logger.info("Video %s processed", video_id)
                    return True
                if upload_status in FAILED_STATUSES:
                    raise RemoteFailure(f"YouTube failed to process video: {upload_status}")

                if upload_status is not None and on_progress:
                    on_progress(
                        ProgressReport(
                            percentage=min(99, 96 + attempt * 4 // max_attempts),
                            status=JobStatus.RUNNING,
                            status_label=f"Processing on YouTube ({upload_status})",
                            elapsed=elapsed_before + loop.elapsed,
                            result_token=video_id,
                        )
                    )

            await loop.wait()

        if loop.canceled:
            logger.info("Stopped waiting for processing of %s: canceled", video_id)
        else:
            logger.warning("Processing status check timed out: %s", video_id)
        return False
