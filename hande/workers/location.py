"""
Location watch loop (driver side).

Consumes a continuous position watch and, for every fix, stores it in the
location slice and forwards it to ``POST /drivers/location`` without
waiting.  No debouncing or batching: the update rate is whatever the
position source emits.  A failed forward is logged and lost; a watch error
(permission denied, timeout) is logged and tracking stops.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Optional, Protocol

from hande.domain.entities import Location
from hande.domain.enums import PermissionStatus
from hande.infrastructure.services import DriversApi
from hande.store.location import set_current_location, set_is_tracking, set_permission_status
from hande.store.store import Store

logger = logging.getLogger(__name__)


class PositionError(Exception):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"position error {code}")
        self.code = code


@dataclass(frozen=True)
class WatchOptions:
    high_accuracy: bool = True
    maximum_age: float = 5.0  # seconds a cached fix may be reused
    timeout: float = 10.0  # seconds to wait for a fix


class PositionSource(Protocol):
    def watch(self, options: WatchOptions) -> AsyncIterator[Location]: ...


class ReplayPositionSource:
    """Emits a fixed sequence of fixes, optionally spaced in time."""

    def __init__(self, positions: Iterable[Location], delay: float = 0.0):
        self.positions = list(positions)
        self.delay = delay

    async def watch(self, options: WatchOptions) -> AsyncIterator[Location]:
        for position in self.positions:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield position


class QueuePositionSource:
    """Fixes pushed in from outside, e.g. the browser shell's geolocation."""

    def __init__(self):
        self._queue: asyncio.Queue[Location | PositionError] = asyncio.Queue()

    def push(self, location: Location) -> None:
        self._queue.put_nowait(location)

    def fail(self, error: PositionError) -> None:
        self._queue.put_nowait(error)

    async def watch(self, options: WatchOptions) -> AsyncIterator[Location]:
        while True:
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=options.timeout)
            except asyncio.TimeoutError:
                logger.warning("No position fix within %ss", options.timeout)
                continue
            if isinstance(item, PositionError):
                raise item
            yield item


class LocationWatcher:
    name = "location-watch"

    def __init__(
        self,
        store: Store,
        drivers_api: DriversApi,
        source: PositionSource,
        options: Optional[WatchOptions] = None,
    ):
        self.store = store
        self.drivers_api = drivers_api
        self.source = source
        self.options = options or WatchOptions()
        self._task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._watch(), name=self.name)
        logger.info("Location watch started")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.store.dispatch(set_is_tracking(False))
        logger.info("Location watch stopped")

    async def drain(self) -> None:
        """Wait for in-flight forwards (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def handle_position(self, location: Location) -> None:
        self.store.dispatch(set_current_location(location))
        task = asyncio.create_task(self._forward(location))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _forward(self, location: Location) -> None:
        try:
            await self.drivers_api.update_location(location)
        except Exception:
            logger.exception("Failed to forward driver location")

    async def _watch(self) -> None:
        self.store.dispatch(set_is_tracking(True))
        try:
            async for location in self.source.watch(self.options):
                self.handle_position(location)
        except PositionError as exc:
            logger.error("Watch position error: %s", exc)
            if exc.code == PositionError.PERMISSION_DENIED:
                self.store.dispatch(set_permission_status(PermissionStatus.DENIED))
        finally:
            self.store.dispatch(set_is_tracking(False))
