"""
Rider endpoints
===============

POST /api/v1/rider/estimate                               -- fare quote (falls back locally)
POST /api/v1/rider/trips                                  -- request a trip, start polling
POST /api/v1/rider/trips/resume                           -- reattach to a running trip
GET  /api/v1/rider/trips/history                          -- past trips
POST /api/v1/rider/trips/{trip_id}/bids/{bid_id}/accept   -- accept a driver's bid
POST /api/v1/rider/trips/{trip_id}/cancel                 -- cancel the active trip
POST /api/v1/rider/trips/{trip_id}/rate                   -- rate a finished trip
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from hande.api.context import SessionContext
from hande.api.dependencies import get_context
from hande.api.middleware import limiter
from hande.api.schemas import (
    BookTripRequest,
    CancelTripRequest,
    ErrorResponse,
    FareQuoteResponse,
    FareRequest,
    RateTripRequest,
)
from hande.domain.entities import Trip
from hande.domain.pricing import VEHICLE_MULTIPLIERS, FareEstimator

router = APIRouter(prefix="/rider", tags=["rider"])

ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.post(
    "/estimate",
    response_model=FareQuoteResponse,
    summary="Quote a fare for every vehicle class",
)
@limiter.limit("100/minute")
async def estimate_fare(
    request: Request,
    body: FareRequest,
    ctx: SessionContext = Depends(get_context),
):
    estimate = await ctx.rider.estimate_fare(body.pickup, body.dropoff, body.vehicle_type)
    return FareQuoteResponse(
        estimate=estimate,
        vehicle_fares={
            vehicle: FareEstimator.vehicle_fare(estimate, vehicle)
            for vehicle in VEHICLE_MULTIPLIERS
        },
    )


@router.post(
    "/trips",
    status_code=201,
    response_model=Trip,
    responses=ERRORS,
    summary="Request a trip and start watching for bids",
)
@limiter.limit("100/minute")
async def book_trip(
    request: Request,
    body: BookTripRequest,
    ctx: SessionContext = Depends(get_context),
):
    return await ctx.rider.book(body.pickup, body.dropoff, body.vehicle_type)


@router.get(
    "/trips/history",
    response_model=list[Trip],
    responses=ERRORS,
    summary="Past trips, newest first",
)
@limiter.limit("100/minute")
async def trip_history(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    ctx: SessionContext = Depends(get_context),
):
    return await ctx.rider.load_history(page, limit)


@router.post(
    "/trips/resume",
    response_model=Optional[Trip],
    summary="Reattach to a trip already running on the backend",
)
@limiter.limit("100/minute")
async def resume_trip(
    request: Request,
    ctx: SessionContext = Depends(get_context),
):
    return await ctx.rider.resume()


@router.post(
    "/trips/{trip_id}/bids/{bid_id}/accept",
    response_model=Trip,
    responses=ERRORS,
    summary="Accept a driver's bid",
)
@limiter.limit("100/minute")
async def accept_bid(
    request: Request,
    trip_id: str,
    bid_id: str,
    ctx: SessionContext = Depends(get_context),
):
    return await ctx.rider.accept_bid(bid_id, trip_id=trip_id)


@router.post(
    "/trips/{trip_id}/cancel",
    status_code=204,
    responses=ERRORS,
    summary="Cancel the active trip",
)
@limiter.limit("100/minute")
async def cancel_trip(
    request: Request,
    trip_id: str,
    body: Optional[CancelTripRequest] = None,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.rider.cancel(body.reason if body else None, trip_id=trip_id)


@router.post(
    "/trips/{trip_id}/rate",
    status_code=204,
    responses=ERRORS,
    summary="Rate a finished trip",
)
@limiter.limit("100/minute")
async def rate_trip(
    request: Request,
    trip_id: str,
    body: RateTripRequest,
    ctx: SessionContext = Depends(get_context),
):
    await ctx.rider.rate(trip_id, body.rating, body.comment)
