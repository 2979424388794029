"""Generation job manager with in-memory storage and background polling."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from shortgen.errors import GenerationTimeout, JobCanceled
from shortgen.jobs.models import GenerationRecord
from shortgen.models.generation import GenerationRequest, JobHandle
from shortgen.models.status import JobStatus, ProgressReport
from shortgen.services.generation import GenerationPoller

logger = logging.getLogger(__name__)


class GenerationJobManager:
    """Runs generation polls in the background with concurrency control.

    Records are stored in-memory (dict). Submission happens in the caller so
    malformed requests fail fast; waiting runs as an asyncio task limited by
    a semaphore.
    """

    def __init__(self, poller: GenerationPoller, max_concurrent: int = 4) -> None:
        self._poller = poller
        self._records: dict[str, GenerationRecord] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def create_job(self, request: GenerationRequest) -> GenerationRecord:
        """Submit a request and start waiting for it in the background.

        Raises:
            ValidationError: Malformed request (nothing is recorded).
            RemoteFailure: The provider refused the request.
        """
        handle = await self._poller.submit(request)
        record = GenerationRecord(request=request, remote_id=handle.id)
        record.status = JobStatus.STARTING
        record.message = "Submitted"
        self._records[record.id] = record
        self._tasks[record.id] = asyncio.create_task(self._run(record, handle))
        return record

    def get_job(self, job_id: str) -> GenerationRecord | None:
        return self._records.get(job_id)

    def list_jobs(self) -> list[GenerationRecord]:
        """List all jobs, most recent first."""
        return sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)

    def cancel_job(self, job_id: str) -> GenerationRecord | None:
        """Stop waiting on a job. The remote generation keeps running."""
        record = self._records.get(job_id)
        if record is not None and not record.status.is_terminal:
            record.cancel.set()
        return record

    async def shutdown(self) -> None:
        """Cancel outstanding waits and let their tasks finish."""
        for record in self._records.values():
            record.cancel.set()
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    async def _run(self, record: GenerationRecord, handle: JobHandle) -> None:
        def on_progress(report: ProgressReport) -> None:
            record.status = report.status
            record.progress = report.percentage
            record.message = report.status_label

        async with self._semaphore:
            try:
                job = await self._poller.wait_for_completion(handle, on_progress, record.cancel)
                record.status = JobStatus.SUCCEEDED
                record.progress = 100
                record.message = "Complete"
                record.output_url = job.output.reference if job.output else None
            except JobCanceled as e:
                record.status = JobStatus.CANCELED
                record.message = str(e)
            except Exception as e:
                logger.exception("Generation %s failed", record.id)
                record.status = (
                    JobStatus.TIMED_OUT if isinstance(e, GenerationTimeout) else JobStatus.FAILED
                )
                record.error = str(e)
                record.message = "Failed"
            finally:
                record.completed_at = datetime.now(timezone.utc)
                self._tasks.pop(record.id, None)
