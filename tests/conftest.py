"""
Shared test fixtures.

No backend is needed: service wrappers are replaced with ``AsyncMock``
objects, or the HTTP layer is driven through ``httpx.MockTransport``.
"""

from typing import Optional

import pytest

from hande.domain.entities import Bid, Location, NearbyTrip, Trip
from hande.domain.enums import TripStatus
from hande.store.store import Store

# Harare CBD -> Avondale
PICKUP = Location(latitude=-17.8292, longitude=31.0522, address="First St")
DROPOFF = Location(latitude=-17.8200, longitude=31.0600, address="Avondale")


def make_trip(
    trip_id: str = "trip-1",
    status: TripStatus = TripStatus.PENDING,
    driver_id: Optional[str] = None,
) -> Trip:
    return Trip(
        id=trip_id,
        rider_id="rider-1",
        driver_id=driver_id,
        status=status,
        pickup=PICKUP,
        dropoff=DROPOFF,
    )


def make_bid(bid_id: str, amount: float = 6.0, driver_id: str = "driver-1") -> Bid:
    return Bid(
        id=bid_id,
        driver_id=driver_id,
        driver_name="Tendai M.",
        amount=amount,
        eta=4,
    )


def make_nearby(trip_id: str = "trip-1") -> NearbyTrip:
    return NearbyTrip(
        id=trip_id,
        pickup=PICKUP,
        dropoff=DROPOFF,
        rider_id="rider-1",
        rider_name="Rudo",
        estimated_fare=6.5,
        distance=1.3,
    )


def trip_payload(trip: Trip) -> dict:
    """Camel-cased wire shape of ``trip`` as the backend sends it."""
    return trip.to_wire()


@pytest.fixture
def store() -> Store:
    return Store()
