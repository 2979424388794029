"""Tests for GenerationJobManager."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from shortgen.errors import ValidationError
from shortgen.jobs.manager import GenerationJobManager
from shortgen.models.generation import GenerationRequest, PredictionState
from shortgen.models.status import JobStatus
from shortgen.polling import IntervalPolicy
from shortgen.services.generation import GenerationPoller


def _manager(clock, *polls, policy=None) -> tuple[GenerationJobManager, AsyncMock]:
    provider = AsyncMock()
    provider.create_prediction.return_value = PredictionState(id="p1", status="starting")
    provider.get_prediction.side_effect = list(polls)
    poller = GenerationPoller(provider, policy=policy, sleep=clock.sleep, clock=clock)
    return GenerationJobManager(poller), provider


async def _settle(manager: GenerationJobManager, job_id: str) -> None:
    for _ in range(500):
        if manager.get_job(job_id).status.is_terminal:
            return
        await asyncio.sleep(0)


class TestGenerationJobManager:
    @pytest.mark.asyncio
    async def test_success(self, clock) -> None:
        manager, _ = _manager(
            clock,
            PredictionState(id="p1", status="processing"),
            PredictionState(id="p1", status="succeeded", output="https://cdn/v.mp4"),
        )

        record = await manager.create_job(GenerationRequest(prompt="a sunset"))
        assert record.remote_id == "p1"
        await _settle(manager, record.id)

        record = manager.get_job(record.id)
        assert record.status == JobStatus.SUCCEEDED
        assert record.progress == 100
        assert record.output_url == "https://cdn/v.mp4"
        assert record.completed_at is not None

    @pytest.mark.asyncio
    async def test_validation_fails_fast(self, clock) -> None:
        manager, provider = _manager(clock)
        with pytest.raises(ValidationError):
            await manager.create_job(GenerationRequest(prompt=""))
        provider.create_prediction.assert_not_called()
        assert manager.list_jobs() == []

    @pytest.mark.asyncio
    async def test_failure_recorded(self, clock) -> None:
        manager, _ = _manager(clock, PredictionState(id="p1", status="failed", error="boom"))
        record = await manager.create_job(GenerationRequest(prompt="p"))
        await _settle(manager, record.id)

        assert record.status == JobStatus.FAILED
        assert record.error == "Video generation failed: boom"

    @pytest.mark.asyncio
    async def test_timeout_recorded(self, clock) -> None:
        polls = [PredictionState(id="p1", status="processing")] * 3
        manager, _ = _manager(clock, *polls, policy=IntervalPolicy(max_attempts=3))
        record = await manager.create_job(GenerationRequest(prompt="p"))
        await _settle(manager, record.id)

        assert record.status == JobStatus.TIMED_OUT

    @pytest.mark.asyncio
    async def test_cancel(self, clock) -> None:
        manager, provider = _manager(clock)
        provider.get_prediction.side_effect = None
        provider.get_prediction.return_value = PredictionState(id="p1", status="processing")

        record = await manager.create_job(GenerationRequest(prompt="p"))
        assert manager.cancel_job(record.id) is record
        await _settle(manager, record.id)

        assert record.status == JobStatus.CANCELED
        assert manager.cancel_job("missing") is None

    @pytest.mark.asyncio
    async def test_list_and_shutdown(self, clock) -> None:
        manager, provider = _manager(clock)
        provider.get_prediction.side_effect = None
        provider.get_prediction.return_value = PredictionState(id="p1", status="succeeded", output="v")

        first = await manager.create_job(GenerationRequest(prompt="one"))
        second = await manager.create_job(GenerationRequest(prompt="two"))
        await _settle(manager, first.id)
        await _settle(manager, second.id)
        await manager.shutdown()

        assert {r.id for r in manager.list_jobs()} == {first.id, second.id}
        assert all(r.status == JobStatus.SUCCEEDED for r in manager.list_jobs())
