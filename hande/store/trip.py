"""Trip slice: the rider's single active trip, its bids and fare estimate."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from hande.domain.entities import Bid, FareEstimate, Location, Trip
from hande.domain.enums import TripStatus

from .core import Slice


@dataclass(frozen=True)
class TripState:
    current_trip: Optional[Trip] = None
    trip_history: tuple[Trip, ...] = ()
    current_bids: tuple[Bid, ...] = ()
    fare_estimate: Optional[FareEstimate] = None
    driver_location: Optional[Location] = None
    is_loading: bool = False


trip_slice: Slice[TripState] = Slice("trip", TripState())


def unique_bids(bids: Iterable[Bid]) -> tuple[Bid, ...]:
    """Keep the first bid seen for each id, preserving order."""
    seen: set[str] = set()
    out = []
    for bid in bids:
        if bid.id in seen:
            continue
        seen.add(bid.id)
        out.append(bid)
    return tuple(out)


@trip_slice.reducer
def set_current_trip(state: TripState, trip: Optional[Trip]) -> TripState:
    return replace(state, current_trip=trip)


@trip_slice.reducer
def update_trip_status(state: TripState, status: TripStatus) -> TripState:
    if state.current_trip is None:
        return state
    return replace(
        state,
        current_trip=state.current_trip.model_copy(update={"status": TripStatus(status)}),
    )


@trip_slice.reducer
def set_trip_history(state: TripState, trips: list[Trip]) -> TripState:
    return replace(state, trip_history=tuple(trips))


@trip_slice.reducer
def add_bid(state: TripState, bid: Bid) -> TripState:
    if any(b.id == bid.id for b in state.current_bids):
        return state
    return replace(state, current_bids=state.current_bids + (bid,))


@trip_slice.reducer
def set_bids(state: TripState, bids: list[Bid]) -> TripState:
    return replace(state, current_bids=unique_bids(bids))


@trip_slice.reducer
def clear_bids(state: TripState, _=None) -> TripState:
    return replace(state, current_bids=())


@trip_slice.reducer
def set_fare_estimate(state: TripState, estimate: Optional[FareEstimate]) -> TripState:
    return replace(state, fare_estimate=estimate)


@trip_slice.reducer
def set_driver_location(state: TripState, location: Optional[Location]) -> TripState:
    return replace(state, driver_location=location)


@trip_slice.reducer
def set_trip_loading(state: TripState, loading: bool) -> TripState:
    return replace(state, is_loading=loading)


@trip_slice.reducer
def clear_trip(state: TripState, _=None) -> TripState:
    return replace(
        state,
        current_trip=None,
        current_bids=(),
        fare_estimate=None,
        driver_location=None,
    )
