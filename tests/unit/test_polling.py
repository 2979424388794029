"""Tests for the bounded poll loop."""

import asyncio

import pytest

from shortgen.polling import IntervalPolicy, PollLoop


class TestIntervalPolicy:
    def test_defaults(self) -> None:
        policy = IntervalPolicy()
        assert policy.max_attempts == 240
        assert policy.interval_for(0) == 1.0
        assert policy.interval_for(9) == 1.0
        assert policy.interval_for(10) == 5.0
        assert policy.interval_for(239) == 5.0

    def test_worst_case(self) -> None:
        assert IntervalPolicy().worst_case_seconds == 10 * 1.0 + 230 * 5.0

    def test_fixed(self) -> None:
        policy = IntervalPolicy.fixed(5.0, 24)
        assert policy.max_attempts == 24
        assert {policy.interval_for(i) for i in range(24)} == {5.0}
        assert policy.worst_case_seconds == 120.0


class TestPollLoop:
    @pytest.mark.asyncio
    async def test_stops_at_ceiling(self, clock) -> None:
        loop = PollLoop(IntervalPolicy(max_attempts=3), sleep=clock.sleep, clock=clock)
        polls = 0
        while loop.should_continue():
            polls += 1
            await loop.wait()
        assert polls == 3
        assert loop.exhausted
        assert not loop.canceled
        assert clock.delays == [1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_elapsed_follows_clock(self, clock) -> None:
        loop = PollLoop(IntervalPolicy.fixed(5.0, 10), sleep=clock.sleep, clock=clock)
        await loop.wait()
        await loop.wait()
        assert loop.attempt == 2
        assert loop.elapsed.total_seconds() == 10.0

    @pytest.mark.asyncio
    async def test_cancel_checked_between_attempts(self, clock) -> None:
        cancel = asyncio.Event()
        loop = PollLoop(IntervalPolicy(), cancel=cancel, sleep=clock.sleep, clock=clock)
        assert loop.should_continue()
        await loop.wait()
        cancel.set()
        assert not loop.should_continue()
        assert loop.canceled
        assert not loop.exhausted

    @pytest.mark.asyncio
    async def test_cancel_wakes_real_wait(self) -> None:
        cancel = asyncio.Event()
        loop = PollLoop(IntervalPolicy.fixed(30.0, 5), cancel=cancel)
        cancel.set()
        await asyncio.wait_for(loop.wait(), timeout=1.0)
        assert loop.attempt == 1
        assert loop.canceled
