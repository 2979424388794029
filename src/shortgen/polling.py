"""Bounded polling state machine.

Remote providers offer no push notification, so every wait in shortgen is a
poll loop: an attempt counter, an interval policy and a hard attempt ceiling.
The sleep coroutine and the clock are injectable so loops can be driven by a
fake clock in tests.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


@dataclass(frozen=True)
class IntervalPolicy:
    """Spacing between polls: `quick_checks` fast polls, then slow ones."""

    max_attempts: int = 240
    quick_checks: int = 10
    quick_interval: float = 1.0
    slow_interval: float = 5.0

    @classmethod
    def fixed(cls, interval: float, max_attempts: int) -> "IntervalPolicy":
        """Constant spacing."""
        return cls(
            max_attempts=max_attempts,
            quick_checks=0,
            quick_interval=interval,
            slow_interval=interval,
        )

    def interval_for(self, attempt: int) -> float:
        """Seconds to wait after the given (0-based) attempt."""
        return self.quick_interval if attempt < self.quick_checks else self.slow_interval

    @property
    def worst_case_seconds(self) -> float:
        quick = min(self.quick_checks, self.max_attempts)
        return quick * self.quick_interval + (self.max_attempts - quick) * self.slow_interval


class PollLoop:
    """Attempt counter driven by an IntervalPolicy.

    Usage::

        loop = PollLoop(policy, cancel=event)
        while loop.should_continue():
            ...poll once...
            await loop.wait()
    """

    def __init__(
        self,
        policy: IntervalPolicy,
        cancel: asyncio.Event | None = None,
        sleep: Sleep | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.policy = policy
        self.attempt = 0
        self._cancel = cancel
        self._sleep = sleep
        self._clock = clock
        self._started = clock()

    @property
    def canceled(self) -> bool:
        return self._cancel is not None and self._cancel.is_set()

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.policy.max_attempts

    @property
    def elapsed(self) -> timedelta:
        return timedelta(seconds=max(0.0, self._clock() - self._started))

    def should_continue(self) -> bool:
        """Checked once per iteration; cancellation is cooperative."""
        return not self.exhausted and not self.canceled

    async def wait(self) -> None:
        """Sleep for the current attempt's interval, then advance the counter."""
        delay = self.policy.interval_for(self.attempt)
        if self._sleep is not None:
            await self._sleep(delay)
        elif self._cancel is not None:
            try:
                await asyncio.wait_for(self._cancel.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        else:
            await asyncio.sleep(delay)
        self.attempt += 1
