"""
PeriodicTask: an interval timer on the asyncio loop with skip-if-busy ticks.

Ticks fire on a fixed cadence. If the previous tick's callback is still
running when the next one is due, that tick is skipped rather than queued,
so one timer never has two inferences outstanding.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

TickCallback = Callable[[], Awaitable[None]]


class PeriodicTask:
    def __init__(
        self,
        name: str,
        callback: TickCallback,
        interval_s: float,
        initial_delay_s: float = 0.0,
    ):
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.name = name
        self._callback = callback
        self.interval_s = interval_s
        self.initial_delay_s = max(0.0, initial_delay_s)
        self._loop_task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Future] = None
        self.ticks = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def start(self) -> None:
        """Schedule the timer on the running loop. No-op if already running."""
        if self.running:
            return
        self._loop_task = asyncio.ensure_future(self._run())

    def cancel(self) -> None:
        """
        Stop the timer immediately.

        An in-flight callback is left to finish on its own; it is not
        cancelled, so it never raises CancelledError into a classifier.
        """
        task, self._loop_task = self._loop_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        if self.initial_delay_s:
            await asyncio.sleep(self.initial_delay_s)

        next_at = loop.time()
        while True:
            self._fire()
            next_at += self.interval_s
            now = loop.time()
            if next_at < now:
                # Fell behind (slow loop); realign instead of bursting.
                next_at = now + self.interval_s
            await asyncio.sleep(next_at - now)

    def _fire(self) -> None:
        if self.busy:
            self.skipped += 1
            logging.debug(f"[{self.name}] previous tick still running, skipping")
            return
        self.ticks += 1
        self._inflight = asyncio.ensure_future(self._invoke())

    async def _invoke(self) -> None:
        try:
            await self._callback()
        except Exception as e:
            logging.warning(f"[{self.name}] tick error: {e}")
