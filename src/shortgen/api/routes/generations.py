"""Video generation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from shortgen.api.deps import get_context, get_job_manager
from shortgen.api.schemas import (
    GenerationCreateRequest,
    GenerationCreateResponse,
    GenerationStatusResponse,
)
from shortgen.context import AccountContext
from shortgen.errors import RemoteFailure, ValidationError
from shortgen.jobs.manager import GenerationJobManager
from shortgen.jobs.models import GenerationRecord
from shortgen.models.generation import GenerationRequest

router = APIRouter(prefix="/api/v1/generations", tags=["generations"])


def _status_response(record: GenerationRecord) -> GenerationStatusResponse:
    return GenerationStatusResponse(
        job_id=record.id,
        remote_id=record.remote_id,
        status=record.status.value,
        progress=record.progress,
        message=record.message,
        output_url=record.output_url,
        error=record.error,
        created_at=record.created_at,
        completed_at=record.completed_at,
    )


@router.post("", response_model=GenerationCreateResponse, status_code=202)
async def create_generation(
    req: GenerationCreateRequest,
    mgr: GenerationJobManager = Depends(get_job_manager),
    context: AccountContext = Depends(get_context),
) -> GenerationCreateResponse:
    request = GenerationRequest(**req.model_dump())
    request.prompt = context.settings.combine_prompts(req.prompt)
    try:
        record = await mgr.create_job(request)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return GenerationCreateResponse(
        job_id=record.id, remote_id=record.remote_id, status=record.status.value
    )


@router.get("", response_model=list[GenerationStatusResponse])
async def list_generations(
    mgr: GenerationJobManager = Depends(get_job_manager),
) -> list[GenerationStatusResponse]:
    return [_status_response(r) for r in mgr.list_jobs()]


@router.get("/{job_id}", response_model=GenerationStatusResponse)
async def get_generation(
    job_id: str,
    mgr: GenerationJobManager = Depends(get_job_manager),
) -> GenerationStatusResponse:
    record = mgr.get_job(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Generation not found")
    return _status_response(record)


@router.post("/{job_id}/cancel", response_model=GenerationStatusResponse)
async def cancel_generation(
    job_id: str,
    mgr: GenerationJobManager = Depends(get_job_manager),
) -> GenerationStatusResponse:
    """Stop waiting on a generation. The remote job is not canceled."""
    record = mgr.cancel_job(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Generation not found")
    return _status_response(record)
