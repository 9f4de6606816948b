"""Driver slice: lifecycle status, nearby requests, active trip, daily fee."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from hande.domain.entities import Bid, DailyFee, Earnings, NearbyTrip, Trip
from hande.domain.enums import DriverStatus, TripStatus
from hande.domain.state_machine import request_transition

from .core import Slice


@dataclass(frozen=True)
class DriverState:
    status: DriverStatus = DriverStatus.OFFLINE
    nearby_trips: tuple[NearbyTrip, ...] = ()
    current_request: Optional[NearbyTrip] = None
    active_trip: Optional[Trip] = None
    my_bids: tuple[Bid, ...] = ()
    daily_fee: Optional[DailyFee] = None
    earnings: Optional[Earnings] = None
    online_time: int = 0  # seconds
    is_loading: bool = False


driver_slice: Slice[DriverState] = Slice("driver", DriverState())


@driver_slice.reducer
def set_driver_status(state: DriverState, status: DriverStatus) -> DriverState:
    new_status = request_transition(state.status, DriverStatus(status), state.daily_fee)
    if new_status == state.status:
        return state
    return replace(state, status=new_status)


@driver_slice.reducer
def set_nearby_trips(state: DriverState, trips: list[NearbyTrip]) -> DriverState:
    return replace(state, nearby_trips=tuple(trips))


@driver_slice.reducer
def add_nearby_trip(state: DriverState, trip: NearbyTrip) -> DriverState:
    if any(t.id == trip.id for t in state.nearby_trips):
        return state
    return replace(state, nearby_trips=(trip,) + state.nearby_trips)


@driver_slice.reducer
def remove_nearby_trip(state: DriverState, trip_id: str) -> DriverState:
    return replace(
        state, nearby_trips=tuple(t for t in state.nearby_trips if t.id != trip_id)
    )


@driver_slice.reducer
def set_current_request(
    state: DriverState, trip: Optional[NearbyTrip]
) -> DriverState:
    # Opening a request bypasses the transition table, as the screen does.
    if trip is None:
        return replace(state, current_request=None)
    return replace(state, current_request=trip, status=DriverStatus.VIEWING_REQUEST)


@driver_slice.reducer
def set_active_trip(state: DriverState, trip: Optional[Trip]) -> DriverState:
    return replace(state, active_trip=trip)


TRIP_TO_DRIVER_STATUS = {
    TripStatus.ACCEPTED: DriverStatus.ARRIVING,
    TripStatus.ARRIVING: DriverStatus.ARRIVING,
    TripStatus.ARRIVED: DriverStatus.ARRIVED,
    TripStatus.IN_PROGRESS: DriverStatus.IN_PROGRESS,
}


@driver_slice.reducer
def restore_driver_status(state: DriverState, trip: Trip) -> DriverState:
    # A trip already running on the backend bypasses the transition table.
    status = TRIP_TO_DRIVER_STATUS.get(trip.status)
    if status is None:
        return state
    return replace(state, status=status)


@driver_slice.reducer
def update_active_trip_status(state: DriverState, status: TripStatus) -> DriverState:
    if state.active_trip is None:
        return state
    return replace(
        state,
        active_trip=state.active_trip.model_copy(update={"status": TripStatus(status)}),
    )


@driver_slice.reducer
def add_my_bid(state: DriverState, bid: Bid) -> DriverState:
    return replace(state, my_bids=state.my_bids + (bid,))


@driver_slice.reducer
def clear_my_bids(state: DriverState, _=None) -> DriverState:
    return replace(state, my_bids=())


@driver_slice.reducer
def set_daily_fee(state: DriverState, fee: Optional[DailyFee]) -> DriverState:
    return replace(state, daily_fee=fee)


@driver_slice.reducer
def set_earnings(state: DriverState, earnings: Optional[Earnings]) -> DriverState:
    return replace(state, earnings=earnings)


@driver_slice.reducer
def increment_online_time(state: DriverState, seconds: int) -> DriverState:
    return replace(state, online_time=state.online_time + seconds)


@driver_slice.reducer
def reset_online_time(state: DriverState, _=None) -> DriverState:
    return replace(state, online_time=0)


@driver_slice.reducer
def set_driver_loading(state: DriverState, loading: bool) -> DriverState:
    return replace(state, is_loading=loading)


@driver_slice.reducer
def reset_driver_state(state: DriverState, _=None) -> DriverState:
    # Daily fee and earnings survive a reset.
    return DriverState(daily_fee=state.daily_fee, earnings=state.earnings)
