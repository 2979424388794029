"""Background jobs: generation tracking and scheduled uploads."""

from shortgen.jobs.dispatcher import ScheduledUploadDispatcher
from shortgen.jobs.manager import GenerationJobManager
from shortgen.jobs.models import GenerationRecord
from shortgen.jobs.store import InMemoryScheduleStore, ScheduleStore

__all__ = [
    "GenerationJobManager",
    "GenerationRecord",
    "InMemoryScheduleStore",
    "ScheduleStore",
    "ScheduledUploadDispatcher",
]
