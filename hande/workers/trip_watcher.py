"""
Trip / bid polling loop (rider side).

While the session's trip is ``pending`` the watcher fetches the bid list
(immediately, then every ``bid_interval``) and replaces ``current_bids``.
Once the trip leaves ``pending`` it re-fetches the trip every
``trip_interval`` and replaces ``current_trip``.  A ``completed`` or
``cancelled`` trip fires ``on_complete`` once and ends the loop.

Responses for a trip that is no longer the session's current trip are
dropped so a late poll cannot resurrect it.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from hande.domain.entities import Trip
from hande.domain.enums import TripStatus
from hande.infrastructure.services import TripsApi
from hande.store.store import Store
from hande.store.trip import set_bids, set_current_trip

from .poller import IntervalPoller

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[Trip], Union[None, Awaitable[None]]]


class TripWatcher(IntervalPoller):
    name = "trip-watcher"

    def __init__(
        self,
        store: Store,
        trips_api: TripsApi,
        on_complete: Optional[CompletionCallback] = None,
        bid_interval: float = 5.0,
        trip_interval: float = 3.0,
    ):
        super().__init__(bid_interval, fire_immediately=True)
        self.store = store
        self.trips_api = trips_api
        self.on_complete = on_complete
        self.bid_interval = bid_interval
        self.trip_interval = trip_interval
        self._completed = False

    def current_interval(self) -> float:
        trip = self.store.state.trip.current_trip
        if trip is not None and trip.status == TripStatus.PENDING:
            return self.bid_interval
        return self.trip_interval

    async def tick(self) -> bool:
        trip = self.store.state.trip.current_trip
        if trip is None or self._completed:
            return False
        if trip.status == TripStatus.PENDING:
            await self.poll_bids(trip.id)
            return True
        return await self.poll_trip(trip.id)

    async def poll_bids(self, trip_id: str) -> None:
        try:
            bids = await self.trips_api.get_bids(trip_id)
        except Exception:
            logger.exception("Failed to fetch bids for trip %s", trip_id)
            return
        if not self._is_current(trip_id):
            logger.debug("Dropping bids for stale trip %s", trip_id)
            return
        self.store.dispatch(set_bids(bids))

    async def poll_trip(self, trip_id: str) -> bool:
        """Refresh the trip.  False once it reached a terminal status."""
        try:
            updated = await self.trips_api.get_by_id(trip_id)
        except Exception:
            logger.exception("Failed to fetch trip %s", trip_id)
            return True
        if not self._is_current(trip_id):
            logger.debug("Dropping update for stale trip %s", trip_id)
            return False

        self.store.dispatch(set_current_trip(updated))
        if updated.is_finished:
            await self._complete(updated)
            return False
        return True

    def _is_current(self, trip_id: str) -> bool:
        trip = self.store.state.trip.current_trip
        return trip is not None and trip.id == trip_id

    async def _complete(self, trip: Trip) -> None:
        if self._completed:
            return
        self._completed = True
        logger.info("Trip %s finished with status %s", trip.id, trip.status.value)
        if self.on_complete is None:
            return
        result = self.on_complete(trip)
        if inspect.isawaitable(result):
            await result
