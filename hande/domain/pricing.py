"""
Fare estimation  (Strategy Pattern)
===================================

The backend quotes fares through ``POST /trips/estimate``.  When that call
fails the rider still needs a number on screen, so a local fallback runs:

    distance  = haversine(pickup, dropoff)                        km
    duration  = floor(distance x MINUTES_PER_KM + 0.5)            min
    total     = max(BASE + distance x RATE_KM + duration x RATE_MIN, MINIMUM)

Per-vehicle quotes scale the estimate by a fixed multiplier.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from .distance import distance_between
from .entities import FareBreakdown, FareEstimate, Location

if TYPE_CHECKING:
    from hande.infrastructure.services import TripsApi

logger = logging.getLogger(__name__)

VEHICLE_MULTIPLIERS = {"hatchback": 0.9, "sedan": 1.0, "suv": 1.3}


# ── Strategy hierarchy ────────────────────────────────────────────────


class FareStrategy(ABC):
    @abstractmethod
    def estimate(self, pickup: Location, dropoff: Location) -> FareEstimate: ...


class FallbackFareStrategy(FareStrategy):
    """Distance + time fare with a fixed floor, computed on-device."""

    def __init__(
        self,
        base_fare: float = 2.5,
        rate_per_km: float = 1.0,
        rate_per_minute: float = 0.25,
        minimum_fare: float = 5.0,
        minutes_per_km: float = 3.0,
    ):
        self.base_fare = base_fare
        self.rate_per_km = rate_per_km
        self.rate_per_minute = rate_per_minute
        self.minimum_fare = minimum_fare
        self.minutes_per_km = minutes_per_km

    def estimate(self, pickup: Location, dropoff: Location) -> FareEstimate:
        distance = distance_between(pickup, dropoff)
        # Half-minutes round up.
        duration = math.floor(distance * self.minutes_per_km + 0.5)
        distance_charge = distance * self.rate_per_km
        time_charge = duration * self.rate_per_minute
        total = max(self.base_fare + distance_charge + time_charge, self.minimum_fare)
        return FareEstimate(
            estimated_fare=total,
            distance=distance,
            duration=duration,
            breakdown=FareBreakdown(
                base_fare=self.base_fare,
                distance_charge=distance_charge,
                time_charge=time_charge,
                total=total,
            ),
        )


# ── Engine facade ─────────────────────────────────────────────────────


class FareEstimator:
    """Backend quote first, local strategy when the backend cannot answer."""

    def __init__(self, trips_api: "TripsApi", fallback: Optional[FareStrategy] = None):
        self.trips_api = trips_api
        self.fallback = fallback or FallbackFareStrategy()

    async def estimate(
        self,
        pickup: Location,
        dropoff: Location,
        vehicle_type: str = "sedan",
    ) -> FareEstimate:
        try:
            return await self.trips_api.estimate_fare(pickup, dropoff, vehicle_type)
        except Exception:
            logger.exception("Failed to get fare estimate, using fallback")
            return self.fallback.estimate(pickup, dropoff)

    @staticmethod
    def vehicle_fare(estimate: FareEstimate, vehicle_type: str) -> float:
        return round(estimate.estimated_fare * VEHICLE_MULTIPLIERS.get(vehicle_type, 1.0), 2)
