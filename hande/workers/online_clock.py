"""Counts the seconds a driver spends online (one tick per second)."""

from __future__ import annotations

from hande.domain.enums import DriverStatus
from hande.store.driver import increment_online_time
from hande.store.store import Store

from .poller import IntervalPoller


class OnlineClock(IntervalPoller):
    name = "online-clock"

    def __init__(self, store: Store, interval_seconds: float = 1.0):
        super().__init__(interval_seconds, fire_immediately=False)
        self.store = store
        self.step = max(1, round(interval_seconds))

    async def tick(self) -> bool:
        if self.store.state.driver.status == DriverStatus.OFFLINE:
            return True
        self.store.dispatch(increment_online_time(self.step))
        return True
