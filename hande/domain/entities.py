"""
Domain entities mirrored from the backend.

Every entity is a pydantic model so backend payloads are validated at the
boundary (camelCase on the wire, snake_case in Python).  Instances are
frozen: the store replaces them, it never mutates them in place.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import (
    TERMINAL_TRIP_STATUSES,
    DocumentStatus,
    DocumentType,
    TripStatus,
    UserType,
)


class Entity(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Value Object ──────────────────────────────────────────────────────


class Location(Entity):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


# ── Trips & bidding ───────────────────────────────────────────────────


class Bid(Entity):
    id: str
    driver_id: str
    driver_name: str
    driver_rating: float = 0.0
    driver_avatar: Optional[str] = None
    vehicle_type: str = ""
    vehicle_plate: str = ""
    amount: float
    eta: int = 0  # minutes
    created_at: Optional[datetime] = None


class Trip(Entity):
    id: str
    rider_id: str
    driver_id: Optional[str] = None
    status: TripStatus = TripStatus.PENDING
    pickup: Location
    dropoff: Location
    fare: Optional[float] = None
    distance: Optional[float] = None
    duration: Optional[float] = None
    accepted_bid: Optional[Bid] = None
    driver_location: Optional[Location] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_TRIP_STATUSES


class NearbyTrip(Entity):
    id: str
    pickup: Location
    dropoff: Location
    rider_id: str
    rider_name: str = ""
    rider_rating: Optional[float] = None
    estimated_fare: float
    distance: float
    created_at: Optional[datetime] = None


class FareBreakdown(Entity):
    base_fare: float
    distance_charge: float
    time_charge: float
    total: float


class FareEstimate(Entity):
    estimated_fare: float
    distance: float
    duration: float
    breakdown: FareBreakdown


class TripPage(Entity):
    trips: list[Trip] = []
    total: int = 0


# ── Driver ────────────────────────────────────────────────────────────


class DailyFee(Entity):
    is_paid: bool
    amount: float = 1.0
    due_date: Optional[datetime] = None
    grace_ends_at: Optional[datetime] = None
    penalty: Optional[float] = None

    @property
    def amount_due(self) -> float:
        return self.amount + (self.penalty or 0.0)

    def in_grace_period(self, now: Optional[datetime] = None) -> bool:
        if self.grace_ends_at is None:
            return False
        if now is None:
            now = datetime.now(self.grace_ends_at.tzinfo)
        return now < self.grace_ends_at

    def allows_going_online(self, now: Optional[datetime] = None) -> bool:
        """A driver may go online once paid, or while a grace period runs."""
        return self.is_paid or self.in_grace_period(now)


class DailyFeePayment(Entity):
    id: str
    amount: float
    days: int = 1
    paid_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class DailyFeeHistory(Entity):
    payments: list[DailyFeePayment] = []
    total: int = 0


class Earnings(Entity):
    today: float = 0.0
    this_week: float = 0.0
    this_month: float = 0.0
    total_trips: int = 0
    pending_payout: float = 0.0


class DriverStatusInfo(Entity):
    is_online: bool
    status: str


class Shift(Entity):
    started_at: datetime
    earnings: float = 0.0
    trips: int = 0


class ShiftSummary(Entity):
    earnings: float = 0.0
    trips: int = 0
    duration: float = 0.0


class Vehicle(Entity):
    id: str
    make: str
    model: str
    year: int
    color: str
    license_plate: str
    type: str
    is_active: bool = False
    is_verified: bool = False
    created_at: Optional[datetime] = None


class Document(Entity):
    id: str
    type: DocumentType
    status: DocumentStatus = DocumentStatus.PENDING
    url: str
    rejection_reason: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DocumentChecklist(Entity):
    required: list[str] = []
    uploaded: list[str] = []
    pending: list[str] = []
    approved: list[str] = []
    rejected: list[str] = []


# ── Accounts ──────────────────────────────────────────────────────────


class User(Entity):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    user_type: UserType = UserType.RIDER
    active_role: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class RiderProfile(Entity):
    id: str
    user_id: str
    rating: Optional[float] = None
    total_trips: int = 0


class DriverProfile(Entity):
    id: str
    user_id: str
    rating: Optional[float] = None
    total_trips: int = 0
    is_online: bool = False
    is_subscribed: bool = False
    subscription_expires_at: Optional[datetime] = None
    vehicle_id: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_plate: Optional[str] = None


class AuthResponse(Entity):
    user: User
    token: str
    rider: Optional[RiderProfile] = None
    driver: Optional[DriverProfile] = None


class GoogleAuthResponse(Entity):
    user: User
    access_token: str


# ── Rider resources ───────────────────────────────────────────────────


class SavedPlace(Entity):
    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    type: str = "other"
    is_default: bool = False


class EmergencyContact(Entity):
    id: str
    name: str
    phone: str
    relationship: str
    is_primary: bool = False


# ── Payments & support ────────────────────────────────────────────────


class Wallet(Entity):
    balance: float
    currency: str = "USD"
    last_updated: Optional[datetime] = None


class PaymentRecord(Entity):
    id: str
    type: str
    amount: float
    status: str
    description: str = ""
    created_at: Optional[datetime] = None


class SupportTicket(Entity):
    id: str
    subject: str
    category: str
    status: str = "open"
    priority: str = "medium"
    description: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
