"""Upload progress estimation strategies.

The resumable transfer used for uploads does not report byte-level
progress, so the default estimator is simulated: a periodic tick raises a
synthetic percentage until a ceiling. This is an approximation, not a
measurement. A transfer that does expose byte callbacks can be paired with a
different ProgressEstimator without changing what progress consumers see.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from shortgen.polling import Sleep

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]


class ProgressEstimator(Protocol):
    """Strategy producing upload percentages while a transfer is in flight."""

    @property
    def percentage(self) -> int:
        ...

    def start(self, on_tick: TickCallback) -> None:
        """Begin estimating; ``on_tick`` receives each new percentage."""
        ...

    async def stop(self) -> None:
        """Stop estimating. Safe to call more than once."""
        ...


class SimulatedProgressEstimator:
    """Synthetic progress: +``step`` % every ``tick`` seconds up to ``ceiling``."""

    def __init__(
        self,
        tick: float = 1.0,
        step: int = 2,
        ceiling: int = 90,
        sleep: Sleep | None = None,
    ) -> None:
        self.tick = tick
        self.step = step
        self.ceiling = ceiling
        self._sleep = sleep or asyncio.sleep
        self._percentage = 0
        self._task: asyncio.Task | None = None

    @property
    def percentage(self) -> int:
        return self._percentage

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, on_tick: TickCallback) -> None:
        if self._task is not None:
            raise RuntimeError("Estimator already started")
        self._task = asyncio.create_task(self._run(on_tick))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self, on_tick: TickCallback) -> None:
        while self._percentage < self.ceiling:
            await self._sleep(self.tick)
            self._percentage = min(self.ceiling, self._percentage + self.step)
            try:
                on_tick(self._percentage)
            except Exception:
                logger.exception("Progress callback raised")

    async def __aenter__(self) -> "SimulatedProgressEstimator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
