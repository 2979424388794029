"""Generation poller: submit a video generation and wait for a terminal state."""

import asyncio
import logging
import time
from datetime import timedelta

from shortgen.errors import GenerationTimeout, JobCanceled, RemoteFailure, TransientPollError, ValidationError
from shortgen.models.generation import (
    ALLOWED_ASPECT_RATIOS,
    ALLOWED_FPS,
    ALLOWED_RESOLUTIONS,
    MAX_DURATION_SECONDS,
    MIN_DURATION_SECONDS,
    GenerationJob,
    GenerationOutput,
    GenerationRequest,
    JobHandle,
)
from shortgen.models.status import JobStatus, ProgressCallback, ProgressReport
from shortgen.polling import Clock, IntervalPolicy, PollLoop, Sleep
from shortgen.services.interfaces import IGenerationProvider

logger = logging.getLogger(__name__)

# Provider status string -> shared vocabulary
PROVIDER_STATUS: dict[str, JobStatus] = {
    "starting": JobStatus.STARTING,
    "processing": JobStatus.RUNNING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.CANCELED,
}

STATUS_LABELS: dict[JobStatus, str] = {
    JobStatus.STARTING: "Initializing",
    JobStatus.RUNNING: "Generating video",
    JobStatus.SUCCEEDED: "Completed",
    JobStatus.FAILED: "Failed",
    JobStatus.CANCELED: "Canceled",
}

# ETA is only estimated once this many attempts have been observed.
ETA_MIN_ATTEMPTS = 5


def validate_request(request: GenerationRequest) -> None:
    """Reject requests the provider would not accept.

    Raises:
        ValidationError: On the first invalid field.
    """
    if not request.prompt or not request.prompt.strip():
        raise ValidationError("Prompt is required")
    if not MIN_DURATION_SECONDS <= request.duration <= MAX_DURATION_SECONDS:
        raise ValidationError(
            f"Duration must be between {MIN_DURATION_SECONDS} and "
            f"{MAX_DURATION_SECONDS} seconds, got {request.duration}"
        )
    if request.resolution not in ALLOWED_RESOLUTIONS:
        raise ValidationError(
            f"Unsupported resolution '{request.resolution}'. "
            f"Allowed: {', '.join(ALLOWED_RESOLUTIONS)}"
        )
    if request.aspect_ratio not in ALLOWED_ASPECT_RATIOS:
        raise ValidationError(
            f"Unsupported aspect ratio '{request.aspect_ratio}'. "
            f"Allowed: {', '.join(ALLOWED_ASPECT_RATIOS)}"
        )
    if request.fps not in ALLOWED_FPS:
        raise ValidationError(f"Unsupported frame rate {request.fps}")


class GenerationPoller:
    """Submits generation requests and polls them to completion.

    Polls fast at first (``quick_checks`` polls one second apart) and then
    every five seconds, up to ``max_attempts`` polls. Poll failures are
    transient: they are logged and the loop carries on.
    """

    def __init__(
        self,
        provider: IGenerationProvider,
        policy: IntervalPolicy | None = None,
        sleep: Sleep | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._provider = provider
        self.policy = policy or IntervalPolicy()
        self._sleep = sleep
        self._clock = clock

    async def submit(self, request: GenerationRequest) -> JobHandle:
        """Validate and submit a request.

        Raises:
            ValidationError: Malformed request (no network call is made).
            RemoteFailure: The provider refused the request.
        """
        validate_request(request)
        state = await self._provider.create_prediction(request)
        logger.info("Generation accepted: id=%s status=%s", state.id, state.status)
        return JobHandle(id=state.id, request=request)

    async def wait_for_completion(
        self,
        handle: JobHandle,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> GenerationJob:
        """Poll until the job reaches a terminal state.

        Returns:
            The succeeded GenerationJob with ``output`` set.

        Raises:
            RemoteFailure: Provider reported failed/canceled.
            GenerationTimeout: ``max_attempts`` polls without a terminal state.
            JobCanceled: ``cancel`` was set; the remote job is left running.
        """
        job = GenerationJob(id=handle.id, request=handle.request)
        loop = PollLoop(self.policy, cancel=cancel, sleep=self._sleep, clock=self._clock)
        max_attempts = self.policy.max_attempts
        last_percentage = 0

        while loop.should_continue():
            try:
                state = await self._provider.get_prediction(handle.id)
            except Exception as e:
                err = TransientPollError(str(e))
                logger.warning(
                    "Status check failed for %s (attempt %d/%d): %s",
                    handle.id,
                    loop.attempt + 1,
                    max_attempts,
                    err,
                )
                await loop.wait()
                continue

            status = PROVIDER_STATUS.get(state.status, JobStatus.PENDING)
            job.status = status

            output = None
            if status == JobStatus.SUCCEEDED:
                output = GenerationOutput.from_provider(state.output)
                if output is None:
                    job.status = JobStatus.FAILED
                    job.error = "Provider reported success without an output"
                    raise RemoteFailure(job.error, details=state.output)

            report = self._progress_for(status, state.status, loop, last_percentage)
            if output is not None:
                report.result_token = output.reference
            if not status.is_terminal:
                last_percentage = report.percentage
            _emit(on_progress, report)

            logger.debug(
                "Attempt %d/%d: %s - %d%%",
                loop.attempt + 1,
                max_attempts,
                state.status,
                report.percentage,
            )

            if status == JobStatus.SUCCEEDED:
                job.output = output
                logger.info("Generation %s succeeded: %s", handle.id, output.reference)
                return job

            if status in (JobStatus.FAILED, JobStatus.CANCELED):
                job.error = state.error or "Unknown error"
                logger.error("Generation %s %s: %s", handle.id, state.status, job.error)
                raise RemoteFailure(f"Video generation failed: {job.error}", details=job)

            await loop.wait()

        if loop.canceled:
            job.status = JobStatus.CANCELED
            logger.info("Stopped waiting for %s: canceled by caller", handle.id)
            raise JobCanceled("Canceled by user")

        job.status = JobStatus.TIMED_OUT
        minutes = int(self.policy.worst_case_seconds // 60)
        raise GenerationTimeout(
            f"Video generation timed out after {max_attempts} checks (about {minutes} minutes)"
        )

    async def generate(
        self,
        request: GenerationRequest,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> GenerationJob:
        """submit() followed by wait_for_completion()."""
        handle = await self.submit(request)
        return await self.wait_for_completion(handle, on_progress, cancel)

    def _progress_for(
        self,
        status: JobStatus,
        raw_status: str,
        loop: PollLoop,
        floor: int,
    ) -> ProgressReport:
        """Map one observation to a ProgressReport.

        Running jobs interpolate 10-90 % over the attempt budget; terminal
        states are fixed. Non-terminal percentages never drop below ``floor``.
        """
        attempt = loop.attempt
        max_attempts = self.policy.max_attempts
        elapsed = loop.elapsed

        if status == JobStatus.SUCCEEDED:
            return ProgressReport(
                percentage=100,
                status=status,
                status_label=STATUS_LABELS[status],
                elapsed=elapsed,
                estimated_remaining=timedelta(0),
            )
        if status in (JobStatus.FAILED, JobStatus.CANCELED):
            return ProgressReport(
                percentage=0,
                status=status,
                status_label=STATUS_LABELS[status],
                elapsed=elapsed,
            )

        if status == JobStatus.STARTING:
            percentage = 5
        elif status == JobStatus.RUNNING:
            percentage = int(min(90.0, (attempt * 100.0 / max_attempts) * 0.8 + 10))
        else:
            percentage = min(90, int(attempt * 100.0 / max_attempts))

        estimated_remaining = None
        if attempt > ETA_MIN_ATTEMPTS:
            per_attempt = elapsed.total_seconds() / attempt
            remaining = per_attempt * max_attempts - elapsed.total_seconds()
            if remaining > 0:
                estimated_remaining = timedelta(seconds=remaining)

        return ProgressReport(
            percentage=max(floor, percentage),
            status=status,
            status_label=STATUS_LABELS.get(status, raw_status),
            elapsed=elapsed,
            estimated_remaining=estimated_remaining,
        )


def _emit(callback: ProgressCallback | None, report: ProgressReport) -> None:
    """Helper to safely report progress."""
    if callback:
        callback(report)
