"""Nearby trip-request polling (driver side, every 10 s while online)."""

from __future__ import annotations

import logging

from hande.domain.enums import DriverStatus
from hande.infrastructure.services import DriversApi
from hande.store.driver import set_nearby_trips
from hande.store.store import Store

from .poller import IntervalPoller

logger = logging.getLogger(__name__)


class NearbyTripsPoller(IntervalPoller):
    name = "nearby-trips"

    def __init__(
        self,
        store: Store,
        drivers_api: DriversApi,
        interval_seconds: float = 10.0,
        radius_km: float | None = None,
    ):
        super().__init__(interval_seconds, fire_immediately=True)
        self.store = store
        self.drivers_api = drivers_api
        self.radius_km = radius_km

    async def tick(self) -> bool:
        state = self.store.state
        if state.driver.status != DriverStatus.ONLINE:
            return True
        here = state.location.current_location
        if here is None:
            return True
        try:
            trips = await self.drivers_api.get_available_trips(
                here.latitude, here.longitude, self.radius_km
            )
        except Exception:
            logger.exception("Failed to fetch nearby trips")
            return True
        self.store.dispatch(set_nearby_trips(trips))
        return True
