"""Pydantic request / response schemas for the session API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from hande.domain.entities import (
    Bid,
    DailyFee,
    Earnings,
    Entity,
    FareEstimate,
    Location,
    NearbyTrip,
    Trip,
    User,
)
from hande.domain.enums import DriverStatus, UserType


# ── Requests ──────────────────────────────────────────────────────────


class FareRequest(Entity):
    pickup: Location
    dropoff: Location
    vehicle_type: str = "sedan"


class BookTripRequest(FareRequest):
    pass


class PlaceBidRequest(Entity):
    trip_id: str
    amount: float = Field(..., gt=0)
    eta: Optional[int] = Field(None, ge=0, description="Minutes to pickup")


class CancelTripRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class RateTripRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class RegisterRequest(Entity):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None
    user_type: UserType = UserType.RIDER


class GoogleSignInRequest(Entity):
    email: str
    google_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image: Optional[str] = None


class SwitchRoleRequest(BaseModel):
    role: UserType


class PositionRequest(Entity):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


# ── Responses ─────────────────────────────────────────────────────────


class FareQuoteResponse(Entity):
    estimate: FareEstimate
    vehicle_fares: dict[str, float]


class NearbyTripView(Entity):
    trip: NearbyTrip
    pickup_distance: Optional[str] = None


class DriverView(Entity):
    status: DriverStatus
    allowed_next: list[DriverStatus]
    is_online: bool = False
    online_time: int = 0
    nearby_trips: list[NearbyTripView] = []
    current_request: Optional[NearbyTrip] = None
    active_trip: Optional[Trip] = None
    my_bids: list[Bid] = []
    daily_fee: Optional[DailyFee] = None
    earnings: Optional[Earnings] = None


class RiderView(Entity):
    current_trip: Optional[Trip] = None
    current_bids: list[Bid] = []
    fare_estimate: Optional[FareEstimate] = None


class SessionStateResponse(Entity):
    is_authenticated: bool
    user_type: str
    user: Optional[User] = None
    current_location: Optional[Location] = None
    is_tracking: bool = False
    driver: DriverView
    rider: RiderView


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
