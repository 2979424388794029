"""Generation job records tracked by the job manager."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from shortgen.models.generation import GenerationRequest
from shortgen.models.status import JobStatus


@dataclass
class GenerationRecord:
    """A generation submitted through the service."""

    request: GenerationRequest
    id: str = field(default_factory=lambda: str(uuid4()))
    remote_id: str | None = None
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    message: str = ""
    output_url: str | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
    cancel: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
