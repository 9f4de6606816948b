"""Domain enumerations and state-transition rules."""

import enum


class DriverStatus(str, enum.Enum):
    OFFLINE = "offline"
    GOING_ONLINE = "going_online"
    ONLINE = "online"
    VIEWING_REQUEST = "viewing_request"
    BIDDING = "bidding"
    BID_PENDING = "bid_pending"
    ACCEPTED = "accepted"
    ARRIVING = "arriving"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETING = "completing"


# State machine: maps current status -> valid next statuses.
# OFFLINE is additionally reachable from every state (manual stop).
DRIVER_TRANSITIONS: dict[DriverStatus, tuple[DriverStatus, ...]] = {
    DriverStatus.OFFLINE: (DriverStatus.GOING_ONLINE,),
    DriverStatus.GOING_ONLINE: (DriverStatus.ONLINE, DriverStatus.OFFLINE),
    DriverStatus.ONLINE: (
        DriverStatus.OFFLINE,
        DriverStatus.VIEWING_REQUEST,
        DriverStatus.BIDDING,
    ),
    DriverStatus.VIEWING_REQUEST: (DriverStatus.ONLINE, DriverStatus.BIDDING),
    DriverStatus.BIDDING: (DriverStatus.ONLINE, DriverStatus.BID_PENDING),
    DriverStatus.BID_PENDING: (DriverStatus.ONLINE, DriverStatus.ACCEPTED),
    DriverStatus.ACCEPTED: (DriverStatus.ARRIVING, DriverStatus.ONLINE),
    DriverStatus.ARRIVING: (DriverStatus.ARRIVED,),
    DriverStatus.ARRIVED: (DriverStatus.IN_PROGRESS,),
    DriverStatus.IN_PROGRESS: (DriverStatus.COMPLETING,),
    DriverStatus.COMPLETING: (DriverStatus.ONLINE, DriverStatus.OFFLINE),
}


class TripStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    ARRIVING = "arriving"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_TRIP_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})


class UserType(str, enum.Enum):
    RIDER = "rider"
    DRIVER = "driver"
    ADMIN = "admin"


class VehicleType(str, enum.Enum):
    HATCHBACK = "hatchback"
    SEDAN = "sedan"
    SUV = "suv"
    VAN = "van"
    MOTORCYCLE = "motorcycle"


class DocumentType(str, enum.Enum):
    LICENSE = "license"
    REGISTRATION = "registration"
    INSURANCE = "insurance"
    PROFILE_PHOTO = "profile_photo"
    VEHICLE_PHOTO = "vehicle_photo"


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PermissionStatus(str, enum.Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
