"""Scheduled upload endpoints."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException

from shortgen.api.deps import get_dispatcher
from shortgen.api.schemas import ScheduleCreateRequest, ScheduleResponse
from shortgen.jobs.dispatcher import ScheduledUploadDispatcher
from shortgen.models.schedule import ScheduledUploadItem

router = APIRouter(prefix="/api/v1/schedules", tags=["schedules"])


def _response(item: ScheduledUploadItem) -> ScheduleResponse:
    return ScheduleResponse(
        id=item.id,
        file_name=item.file_name,
        scheduled_time=item.scheduled_time,
        title=item.title,
        visibility=item.visibility,
        status=item.status.value,
        uploaded_url=item.uploaded_url,
        error_message=item.error_message,
        start_time=item.start_time,
        completed_time=item.completed_time,
    )


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    req: ScheduleCreateRequest,
    dispatcher: ScheduledUploadDispatcher = Depends(get_dispatcher),
) -> ScheduleResponse:
    path = Path(req.file_path)
    if not path.is_file():
        raise HTTPException(status_code=422, detail=f"file_path not found: {req.file_path}")
    if not req.title.strip():
        raise HTTPException(status_code=422, detail="title is required")

    item = ScheduledUploadItem(
        file_name=path.name,
        file_path=str(path),
        scheduled_time=req.scheduled_time,
        title=req.title,
        description=req.description,
        tags=req.tags,
        visibility=req.visibility,
        edit_instructions=req.edit_instructions,
    )
    dispatcher.enqueue(item)
    return _response(item)


@router.get("", response_model=list[ScheduleResponse])
async def list_schedules(
    finished: bool = False,
    dispatcher: ScheduledUploadDispatcher = Depends(get_dispatcher),
) -> list[ScheduleResponse]:
    """Waiting uploads, or completed/failed ones with ``?finished=true``."""
    items = dispatcher.list_finished() if finished else dispatcher.list_all()
    return [_response(i) for i in items]


@router.get("/{item_id}", response_model=ScheduleResponse)
async def get_schedule(
    item_id: str,
    dispatcher: ScheduledUploadDispatcher = Depends(get_dispatcher),
) -> ScheduleResponse:
    item = dispatcher.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Scheduled upload not found")
    return _response(item)
