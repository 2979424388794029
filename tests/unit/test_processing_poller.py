"""Tests for ProcessingPoller."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from shortgen.errors import RemoteFailure
from shortgen.models.status import ProgressReport
from shortgen.services.processing import ProcessingPoller


def _poller(clock, *statuses) -> tuple[ProcessingPoller, AsyncMock]:
    source = AsyncMock()
    source.get_upload_status.side_effect = list(statuses)
    return ProcessingPoller(source, sleep=clock.sleep, clock=clock), source


class TestWaitForProcessing:
    @pytest.mark.asyncio
    async def test_ready_immediately(self, clock) -> None:
        poller, source = _poller(clock, "uploaded")
        assert await poller.wait_for_processing("vid1") is True
        source.get_upload_status.assert_awaited_once_with("vid1")
        assert clock.delays == []

    @pytest.mark.asyncio
    async def test_not_listed_then_processed(self, clock) -> None:
        poller, source = _poller(clock, None, None, "processed")
        assert await poller.wait_for_processing("vid1") is True
        assert source.get_upload_status.await_count == 3
        assert clock.delays == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_rejected_raises(self, clock) -> None:
        poller, _ = _poller(clock, None, "rejected")
        with pytest.raises(RemoteFailure, match="rejected"):
            await poller.wait_for_processing("vid1")

    @pytest.mark.asyncio
    async def test_gives_up_after_24_attempts(self, clock) -> None:
        source = AsyncMock()
        source.get_upload_status.return_value = None
        poller = ProcessingPoller(source, sleep=clock.sleep, clock=clock)

        assert await poller.wait_for_processing("vid1") is False
        assert source.get_upload_status.await_count == 24
        assert clock.delays == [5.0] * 24

    @pytest.mark.asyncio
    async def test_errors_are_absorbed(self, clock) -> None:
        poller, source = _poller(clock, httpx.ConnectError("boom"), "processed")
        assert await poller.wait_for_processing("vid1") is True
        assert source.get_upload_status.await_count == 2

    @pytest.mark.asyncio
    async def test_progress_reported_for_known_status(self, clock) -> None:
        poller, _ = _poller(clock, None, "processing", "processed")
        reports: list[ProgressReport] = []

        await poller.wait_for_processing("vid1", on_progress=reports.append)

        assert len(reports) == 1
        assert 96 <= reports[0].percentage <= 99
        assert reports[0].status_label == "Processing on YouTube (processing)"
        assert reports[0].result_token == "vid1"

    @pytest.mark.asyncio
    async def test_cancel_returns_false(self, clock) -> None:
        cancel = asyncio.Event()
        cancel.set()
        poller, source = _poller(clock)
        assert await poller.wait_for_processing("vid1", cancel=cancel) is False
        source.get_upload_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_elapsed_continues_from_upload(self, clock) -> None:
        poller, _ = _poller(clock, None, "processing", "processed")
        reports: list[ProgressReport] = []

        await poller.wait_for_processing(
            "vid1", on_progress=reports.append, elapsed_before=timedelta(seconds=30)
        )

        assert [r.elapsed for r in reports] == [timedelta(seconds=35)]
