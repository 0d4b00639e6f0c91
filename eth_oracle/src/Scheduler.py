"""Scheduler: Fixed-interval driver for the batch processor.

Ticks fire on a fixed cadence measured from the start of the schedule, not
from the end of the previous tick, and regardless of queue depth. A tick
that comes due while the previous one is still running is skipped, so the
batch processor never runs twice at once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SLEEP_INTERVAL_MS = 2000


class Scheduler:
    """Runs an async callback every ``interval_ms`` milliseconds.

    :ivar callback: Coroutine function invoked on each tick.
    :ivar interval: Tick period in seconds.
    :ivar ticks: Number of ticks started.
    :ivar skipped: Number of ticks skipped due to overlap.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval_ms: int = DEFAULT_SLEEP_INTERVAL_MS,
    ) -> None:
        """Initialize the scheduler.

        :param callback: Coroutine function to run per tick.
        :param interval_ms: Tick period in milliseconds (default: 2000).
        :raises ValueError: If interval_ms is not positive.
        """
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.callback = callback
        self.interval = interval_ms / 1000
        self.ticks = 0
        self.skipped = 0
        self._current: asyncio.Task | None = None
        self._stopped = asyncio.Event()

    @property
    def busy(self) -> bool:
        """True while a tick is running."""
        return self._current is not None and not self._current.done()

    async def run(self) -> None:
        """Fire ticks until stop() is called, then wait for the last tick."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval

        while not self._stopped.is_set():
            try:
                await asyncio.wait_for(
                    self._stopped.wait(), timeout=max(0.0, next_tick - loop.time())
                )
                break
            except asyncio.TimeoutError:
                pass
            next_tick += self.interval

            if self.busy:
                self.skipped += 1
                logger.warning("Previous tick still running, skipping this one")
                continue

            self.ticks += 1
            self._current = asyncio.create_task(self._tick(self.ticks))

        if self._current is not None:
            await self._current

    async def _tick(self, number: int) -> None:
        try:
            await self.callback()
        except Exception:
            logger.exception(f"Tick {number} failed")

    def stop(self) -> None:
        """Stop firing new ticks."""
        self._stopped.set()
