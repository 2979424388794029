"""Upload pipeline: validate, transfer in chunks, then confirm processing."""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

from shortgen.errors import (
    AuthError,
    JobCanceled,
    ProcessingIncomplete,
    UploadFailure,
    ValidationError,
)
from shortgen.models.status import JobStatus, ProgressCallback, ProgressReport
from shortgen.models.upload import TransferStatus, UploadJob, VideoMetadata, Visibility
from shortgen.polling import Clock
from shortgen.services.interfaces import IAuthenticator, IResumableTransfer
from shortgen.services.processing import ProcessingPoller
from shortgen.services.progress import ProgressEstimator, SimulatedProgressEstimator
from shortgen.services.youtube import DEFAULT_CHUNK_SIZE, watch_url

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024  # 2 GiB
ALLOWED_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".wmv", ".flv", ".webm", ".mkv"})
MAX_TAG_LENGTH = 500
CATEGORY_PEOPLE_AND_BLOGS = "22"

VISIBILITY_LABELS: dict[str, Visibility] = {
    "public": Visibility.PUBLIC,
    "unlisted": Visibility.UNLISTED,
    "link sharing": Visibility.UNLISTED,
    "link only": Visibility.UNLISTED,
    "not listed": Visibility.UNLISTED,
    "private": Visibility.PRIVATE,
}

EstimatorFactory = Callable[[], ProgressEstimator]


def validate_video_file(path: Path) -> None:
    """Check a local file is uploadable.

    Raises:
        ValidationError: Missing or empty file, over 2 GiB, or unsupported
            extension.
    """
    path = Path(path)
    if not path.is_file():
        raise ValidationError(f"Video file not found: {path}")

    size = path.stat().st_size
    if size == 0:
        raise ValidationError(f"Video file is empty: {path}")
    if size > MAX_FILE_SIZE:
        raise ValidationError(
            f"Video file is too large: {size // (1024 * 1024)} MB (limit 2048 MB)"
        )

    if path.suffix.lower() not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"Unsupported video format '{path.suffix}'. "
            f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )


def parse_tags(tags: str | None) -> list[str]:
    """Split comma-separated tags; drop empty and over-long entries."""
    if not tags:
        return []
    result = []
    for tag in tags.split(","):
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            logger.warning("Dropping tag over %d characters", MAX_TAG_LENGTH)
            continue
        result.append(tag)
    return result


def map_visibility(label: str | None) -> Visibility:
    """Map a human visibility label to the host's value (private by default)."""
    if not label:
        return Visibility.PRIVATE
    return VISIBILITY_LABELS.get(label.strip().lower(), Visibility.PRIVATE)


def build_video_resource(metadata: VideoMetadata) -> dict[str, Any]:
    """Video resource body for the upload session."""
    snippet: dict[str, Any] = {
        "title": metadata.title,
        "description": metadata.description,
        "categoryId": CATEGORY_PEOPLE_AND_BLOGS,
    }
    tags = parse_tags(metadata.tags)
    if tags:
        snippet["tags"] = tags

    return {
        "snippet": snippet,
        "status": {
            "privacyStatus": map_visibility(metadata.visibility).value,
            "selfDeclaredMadeForKids": False,
        },
    }


class UploadPipeline:
    """Uploads a local video and waits (best effort) for host processing.

    Progress while the transfer is in flight comes from a ProgressEstimator;
    the default one is simulated because the transfer reports no byte counts.
    """

    def __init__(
        self,
        authenticator: IAuthenticator,
        transfer: IResumableTransfer,
        processing: ProcessingPoller,
        estimator_factory: EstimatorFactory = SimulatedProgressEstimator,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the pipeline.

        Args:
            authenticator: Account session; must provide ``is_authenticated()``
                and an ``in_flight()`` async context manager
            transfer: Chunked transfer implementation
            processing: Poller for post-upload processing
            estimator_factory: Builds one progress estimator per upload
            chunk_size: Bytes per chunk
            clock: Monotonic clock for elapsed times
        """
        self.authenticator = authenticator
        self._transfer = transfer
        self._processing = processing
        self._estimator_factory = estimator_factory
        self.chunk_size = chunk_size
        self._clock = clock

    async def upload(
        self,
        job: UploadJob,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Upload a video and return its watch URL.

        Raises:
            AuthError: No authenticated session.
            ValidationError: The file failed validation (nothing was sent).
            UploadFailure: The transfer failed or returned no video id.
            RemoteFailure: The host rejected the video during processing.
            JobCanceled: Canceled during the transfer.
        """
        started = self._clock()

        def elapsed() -> timedelta:
            return timedelta(seconds=self._clock() - started)

        async with self.authenticator.in_flight():
            if not self.authenticator.is_authenticated():
                raise AuthError("Not authenticated with YouTube. Authenticate first.")

            validate_video_file(job.source_path)
            job.validated = True
            resource = build_video_resource(job.metadata)

            logger.info("Upload starting: %s", job.source_path.name)

            def on_tick(percentage: int) -> None:
                _emit(
                    on_progress,
                    ProgressReport(
                        percentage=percentage,
                        status=JobStatus.RUNNING,
                        status_label="Uploading",
                        elapsed=elapsed(),
                    ),
                )

            estimator = self._estimator_factory()
            estimator.start(on_tick)
            try:
                result = await self._transfer.upload(
                    job.source_path, resource, self.chunk_size, cancel
                )
            except (AuthError, JobCanceled):
                raise
            except Exception as e:
                logger.exception("Upload transfer error: %s", job.source_path.name)
                raise UploadFailure(f"Video upload failed: {e}") from e
            finally:
                await estimator.stop()

            if result.status == TransferStatus.FAILED:
                raise UploadFailure(f"Upload failed: {result.error or 'Unknown error'}")
            if result.status != TransferStatus.COMPLETED:
                raise UploadFailure(f"Upload did not complete: {result.status.value}")
            if not result.resource_id:
                raise UploadFailure("Upload completed but no video id was returned")

            video_id = result.resource_id
            _emit(
                on_progress,
                ProgressReport(
                    percentage=95,
                    status=JobStatus.RUNNING,
                    status_label="Processing on YouTube",
                    elapsed=elapsed(),
                    result_token=video_id,
                ),
            )

            processed = await self._processing.wait_for_processing(
                video_id, on_progress, cancel, elapsed_before=elapsed()
            )
            if not processed:
                logger.warning(
                    "%s",
                    ProcessingIncomplete(
                        f"Processing of {video_id} not confirmed; upload reported as complete"
                    ),
                )

            _emit(
                on_progress,
                ProgressReport(
                    percentage=100,
                    status=JobStatus.SUCCEEDED,
                    status_label=(
                        "Upload and processing complete"
                        if processed
                        else "Upload complete (processing unconfirmed)"
                    ),
                    elapsed=elapsed(),
                    result_token=video_id,
                ),
            )

            url = watch_url(video_id)
            logger.info("Upload finished: %s -> %s", job.source_path.name, url)
            return url


def _emit(callback: ProgressCallback | None, report: ProgressReport) -> None:
    """Helper to safely report progress."""
    if callback:
        callback(report)
