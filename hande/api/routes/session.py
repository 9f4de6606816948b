"""
Session endpoints
=================

GET /api/v1/session/state -- snapshot of the shared client state
GET /api/v1/health        -- simple health check
"""

from fastapi import APIRouter, Depends, Request

from hande.api.context import SessionContext
from hande.api.dependencies import get_context
from hande.api.middleware import limiter
from hande.api.schemas import (
    DriverView,
    HealthResponse,
    NearbyTripView,
    RiderView,
    SessionStateResponse,
)
from hande.domain.distance import distance_between, format_distance
from hande.domain.state_machine import DriverStatusMachine
from hande.store.store import AppState

router = APIRouter(tags=["session"])


def build_state_response(state: AppState) -> SessionStateResponse:
    here = state.location.current_location
    nearby = [
        NearbyTripView(
            trip=t,
            pickup_distance=(
                format_distance(distance_between(here, t.pickup)) if here else None
            ),
        )
        for t in state.driver.nearby_trips
    ]
    return SessionStateResponse(
        is_authenticated=state.auth.is_authenticated,
        user=state.auth.user,
        user_type=state.auth.user_type.value,
        current_location=here,
        is_tracking=state.location.is_tracking,
        driver=DriverView(
            status=state.driver.status,
            allowed_next=list(DriverStatusMachine(state.driver.status).allowed_next()),
            is_online=state.auth.driver is not None and state.auth.driver.is_online,
            online_time=state.driver.online_time,
            nearby_trips=nearby,
            current_request=state.driver.current_request,
            active_trip=state.driver.active_trip,
            my_bids=list(state.driver.my_bids),
            daily_fee=state.driver.daily_fee,
            earnings=state.driver.earnings,
        ),
        rider=RiderView(
            current_trip=state.trip.current_trip,
            current_bids=list(state.trip.current_bids),
            fare_estimate=state.trip.fare_estimate,
        ),
    )


@router.get(
    "/session/state",
    response_model=SessionStateResponse,
    summary="Snapshot of the shared client state",
)
@limiter.limit("100/minute")
async def get_state(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    return build_state_response(ctx.store.state)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
