"""
Driver endpoints
================

POST /api/v1/driver/online                      -- go online (daily fee checked)
POST /api/v1/driver/offline                     -- go offline, stop background loops
POST /api/v1/driver/location                    -- push a geolocation fix
POST /api/v1/driver/requests/{trip_id}/view     -- open a nearby trip request
POST /api/v1/driver/requests/dismiss            -- close the open request
POST /api/v1/driver/bids                        -- place a bid
POST /api/v1/driver/trip/refresh                -- pick up an awarded trip
POST /api/v1/driver/trip/{action}               -- arrive | start | complete
POST /api/v1/driver/daily-fee/pay               -- pay the $1/day fee
POST /api/v1/driver/dashboard/refresh           -- reload fee, earnings, running trip
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Request

from hande.api.context import SessionContext
from hande.api.dependencies import get_context
from hande.api.middleware import limiter
from hande.api.routes.session import build_state_response
from hande.api.routes.rider import ERRORS
from hande.api.schemas import PlaceBidRequest, PositionRequest, SessionStateResponse
from hande.domain.entities import Bid, Location, Trip
from hande.store.location import set_current_location

router = APIRouter(prefix="/driver", tags=["driver"])


@router.post(
    "/online",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Go online and start location / nearby-trip loops",
)
@limiter.limit("100/minute")
async def go_online(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.driver.go_online()
    return build_state_response(ctx.store.state)


@router.post(
    "/offline",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Go offline",
)
@limiter.limit("100/minute")
async def go_offline(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.driver.go_offline()
    return build_state_response(ctx.store.state)


@router.post(
    "/location",
    status_code=202,
    summary="Push a position fix from the device",
    description=(
        "While the location watch runs the fix is queued and forwarded to the "
        "backend; otherwise it only updates the current location."
    ),
)
@limiter.limit("600/minute")
async def push_location(
    request: Request,
    body: PositionRequest,
    ctx: SessionContext = Depends(get_context),
):
    location = Location(
        latitude=body.latitude, longitude=body.longitude, address=body.address
    )
    watch = ctx.driver.location_watch
    if watch is not None and watch.running:
        ctx.positions.push(location)
    else:
        ctx.store.dispatch(set_current_location(location))
    return {"accepted": True}


@router.post(
    "/requests/{trip_id}/view",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Open a nearby trip request",
)
@limiter.limit("100/minute")
async def view_request(
    request: Request,
    trip_id: str,
    ctx: SessionContext = Depends(get_context),
):
    ctx.driver.view_request(trip_id)
    return build_state_response(ctx.store.state)


@router.post(
    "/requests/dismiss",
    response_model=SessionStateResponse,
    summary="Close the open trip request",
)
@limiter.limit("100/minute")
async def dismiss_request(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    ctx.driver.dismiss_request()
    return build_state_response(ctx.store.state)


@router.post(
    "/bids",
    status_code=201,
    response_model=Bid,
    responses=ERRORS,
    summary="Place a bid on a trip request",
)
@limiter.limit("100/minute")
async def place_bid(
    request: Request,
    body: PlaceBidRequest,
    ctx: SessionContext = Depends(get_context),
):
    return await ctx.driver.place_bid(body.trip_id, body.amount, body.eta)


@router.post(
    "/trip/refresh",
    response_model=Optional[Trip],
    summary="Check whether a bid was accepted",
)
@limiter.limit("100/minute")
async def refresh_trip(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    return await ctx.driver.check_bid_outcome()


@router.post(
    "/trip/{action}",
    response_model=Optional[Trip],
    responses=ERRORS,
    summary="Advance the active trip",
)
@limiter.limit("100/minute")
async def update_trip(
    request: Request,
    action: Literal["arrive", "start", "complete"],
    ctx: SessionContext = Depends(get_context),
):
    return await ctx.driver.update_trip(action)


@router.post(
    "/daily-fee/pay",
    response_model=SessionStateResponse,
    responses=ERRORS,
    summary="Pay the daily fee",
)
@limiter.limit("100/minute")
async def pay_daily_fee(
    request: Request,
    payment_method: str = "wallet",
    ctx: SessionContext = Depends(get_context),
):
    await ctx.driver.pay_daily_fee(payment_method)
    return build_state_response(ctx.store.state)


@router.post(
    "/dashboard/refresh",
    response_model=SessionStateResponse,
    summary="Reload daily fee, earnings and any running trip",
)
@limiter.limit("100/minute")
async def refresh_dashboard(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.driver.load_dashboard()
    return build_state_response(ctx.store.state)
