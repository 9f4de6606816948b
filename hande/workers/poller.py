"""
Fixed-interval background loop.

Each subclass implements ``tick()``; the loop runs it, then sleeps for the
interval or until ``stop()`` is signalled.  There is no backoff, jitter or
retry: an exception in ``tick()`` is logged and the next tick tries again.
A subclass ends its own loop by returning ``False`` from ``tick()``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class IntervalPoller(ABC):
    name = "poller"

    def __init__(self, interval_seconds: float, fire_immediately: bool = True):
        self.interval = interval_seconds
        self.fire_immediately = fire_immediately
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    # ── Public API ────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("%s started (interval=%ss)", self.name, self.interval)

    async def stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()
        task, self._task = self._task, None
        if task and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("%s stopped", self.name)

    def current_interval(self) -> float:
        return self.interval

    @abstractmethod
    async def tick(self) -> bool:
        """Run one poll.  Return False to end the loop."""

    # ── Internals ─────────────────────────────────────────────────────

    async def _wait(self) -> bool:
        """Sleep one interval.  True if stop was signalled meanwhile."""
        assert self._stop_event is not None
        try:
            await asyncio.wait_for(
                self._stop_event.wait(), timeout=self.current_interval()
            )
            return True
        except asyncio.TimeoutError:
            return False

    async def _loop(self) -> None:
        assert self._stop_event is not None
        if not self.fire_immediately and await self._wait():
            return
        while not self._stop_event.is_set():
            try:
                keep_going = await self.tick()
            except Exception:
                logger.exception("Unhandled error in %s tick", self.name)
                keep_going = True
            if keep_going is False:
                logger.info("%s finished", self.name)
                break
            if await self._wait():
                break
