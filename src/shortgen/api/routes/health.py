"""Service health endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shortgen.api.deps import get_dispatcher
from shortgen.jobs.dispatcher import ScheduledUploadDispatcher

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    dispatcher_running: bool
    scheduled_uploads: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    dispatcher: ScheduledUploadDispatcher = Depends(get_dispatcher),
) -> HealthResponse:
    """Report the version and whether scheduled uploads are being dispatched.

    ``status`` is "degraded" while the dispatcher loop is not running.
    """
    from shortgen import __version__

    running = dispatcher.running
    return HealthResponse(
        status="healthy" if running else "degraded",
        version=__version__,
        dispatcher_running=running,
        scheduled_uploads=dispatcher.count(),
    )
