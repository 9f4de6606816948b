"""Location slice: device position, pickup / dropoff selection, saved places."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from hande.domain.entities import Location, SavedPlace
from hande.domain.enums import PermissionStatus

from .core import Slice

MAX_RECENT_ADDRESSES = 10


@dataclass(frozen=True)
class LocationState:
    current_location: Optional[Location] = None
    pickup_location: Optional[Location] = None
    dropoff_location: Optional[Location] = None
    saved_places: tuple[SavedPlace, ...] = ()
    recent_addresses: tuple[Location, ...] = ()
    is_tracking: bool = False
    permission_status: Optional[PermissionStatus] = None


location_slice: Slice[LocationState] = Slice("location", LocationState())


@location_slice.reducer
def set_current_location(state: LocationState, location: Location) -> LocationState:
    return replace(state, current_location=location)


@location_slice.reducer
def set_pickup_location(
    state: LocationState, location: Optional[Location]
) -> LocationState:
    return replace(state, pickup_location=location)


@location_slice.reducer
def set_dropoff_location(
    state: LocationState, location: Optional[Location]
) -> LocationState:
    return replace(state, dropoff_location=location)


@location_slice.reducer
def set_saved_places(state: LocationState, places: list[SavedPlace]) -> LocationState:
    return replace(state, saved_places=tuple(places))


@location_slice.reducer
def add_recent_address(state: LocationState, location: Location) -> LocationState:
    others = tuple(
        a
        for a in state.recent_addresses
        if a.latitude != location.latitude or a.longitude != location.longitude
    )
    return replace(
        state, recent_addresses=((location,) + others)[:MAX_RECENT_ADDRESSES]
    )


@location_slice.reducer
def set_is_tracking(state: LocationState, tracking: bool) -> LocationState:
    return replace(state, is_tracking=tracking)


@location_slice.reducer
def set_permission_status(
    state: LocationState, status: Optional[PermissionStatus]
) -> LocationState:
    return replace(state, permission_status=status)


@location_slice.reducer
def clear_locations(state: LocationState, _=None) -> LocationState:
    return replace(state, pickup_location=None, dropoff_location=None)
