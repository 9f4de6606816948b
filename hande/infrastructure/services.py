"""
Backend service wrappers -- one class per REST resource group.

Each wrapper receives the shared ``ApiClient`` and exposes the calls the
screens need, returning validated domain entities.
"""

from __future__ import annotations

from typing import Any, Optional

from hande.domain.entities import (
    AuthResponse,
    Bid,
    DailyFee,
    DailyFeeHistory,
    Document,
    DocumentChecklist,
    DriverStatusInfo,
    Earnings,
    EmergencyContact,
    FareEstimate,
    GoogleAuthResponse,
    Location,
    NearbyTrip,
    PaymentRecord,
    SavedPlace,
    Shift,
    ShiftSummary,
    SupportTicket,
    Trip,
    TripPage,
    Vehicle,
    Wallet,
)
from hande.domain.enums import DocumentType, UserType

from .http import ApiClient


def _point(location: Location) -> dict:
    return location.to_wire()


class AuthApi:
    """Login / registration.  Successful sign-ins persist the token."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def _authenticate(self, path: str, body: dict) -> AuthResponse:
        auth = await self.client.post(AuthResponse, path, json=body)
        self.client.token_store.set(auth.token)
        return auth

    async def login(self, email: str, password: str) -> AuthResponse:
        return await self._authenticate(
            "/auth/login", {"email": email, "password": password}
        )

    async def register(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        user_type: UserType = UserType.RIDER,
    ) -> AuthResponse:
        body = {
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "password": password,
            "userType": UserType(user_type).value,
        }
        if phone:
            body["phone"] = phone
        return await self._authenticate("/auth/register", body)

    async def register_driver(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        **vehicle: Any,
    ) -> AuthResponse:
        """``vehicle`` takes licenseNumber / vehicleType / vehicleMake / ... keys."""
        body = {
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "password": password,
            "userType": UserType.DRIVER.value,
            **{k: v for k, v in vehicle.items() if v is not None},
        }
        if phone:
            body["phone"] = phone
        return await self._authenticate("/auth/register/driver", body)

    async def google_auth(
        self,
        *,
        email: str,
        google_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> GoogleAuthResponse:
        body = {
            "email": email,
            "googleId": google_id,
            "firstName": first_name,
            "lastName": last_name,
            "profileImage": profile_image,
        }
        auth = await self.client.post(
            GoogleAuthResponse,
            "/auth/google",
            json={k: v for k, v in body.items() if v is not None},
        )
        self.client.token_store.set(auth.access_token)
        return auth

    async def logout(self) -> None:
        try:
            await self.client.send("POST", "/auth/logout")
        finally:
            self.client.token_store.clear()

    async def me(self) -> AuthResponse:
        return await self.client.get(AuthResponse, "/auth/me")

    async def switch_role(self, role: UserType) -> AuthResponse:
        # The backend re-issues the token with the new active role.
        return await self._authenticate(
            "/auth/switch-role", {"role": UserType(role).value}
        )

    async def verify_phone(self, code: str) -> None:
        await self.client.send("POST", "/auth/verify-phone", json={"code": code})

    async def send_verification_code(self, phone: str) -> None:
        await self.client.send("POST", "/auth/send-code", json={"phone": phone})


class TripsApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def estimate_fare(
        self, pickup: Location, dropoff: Location, vehicle_type: Optional[str] = None
    ) -> FareEstimate:
        body = {"pickup": _point(pickup), "dropoff": _point(dropoff)}
        if vehicle_type:
            body["vehicleType"] = vehicle_type
        return await self.client.post(FareEstimate, "/trips/estimate", json=body)

    async def create(
        self, pickup: Location, dropoff: Location, vehicle_type: Optional[str] = None
    ) -> Trip:
        body = {"pickup": _point(pickup), "dropoff": _point(dropoff)}
        if vehicle_type:
            body["vehicleType"] = vehicle_type
        return await self.client.post(Trip, "/trips", json=body)

    async def get_by_id(self, trip_id: str) -> Trip:
        return await self.client.get(Trip, f"/trips/{trip_id}")

    async def get_bids(self, trip_id: str) -> list[Bid]:
        return await self.client.get(list[Bid], f"/trips/{trip_id}/bids")

    async def accept_bid(self, trip_id: str, bid_id: str) -> Trip:
        return await self.client.post(Trip, f"/trips/{trip_id}/bids/{bid_id}/accept")

    async def cancel(self, trip_id: str, reason: Optional[str] = None) -> None:
        await self.client.send("POST", f"/trips/{trip_id}/cancel", json={"reason": reason})

    async def rate(self, trip_id: str, rating: int, comment: Optional[str] = None) -> None:
        await self.client.send(
            "POST", f"/trips/{trip_id}/rate", json={"rating": rating, "comment": comment}
        )

    async def history(self, page: int = 1, limit: int = 20) -> TripPage:
        return await self.client.get(
            TripPage, "/trips/history", params={"page": page, "limit": limit}
        )

    async def get_current(self) -> Optional[Trip]:
        return await self.client.get(Optional[Trip], "/trips/current")


class DriversApi:
    def __init__(self, client: ApiClient):
        self.client = client

    # Status
    async def get_status(self) -> DriverStatusInfo:
        return await self.client.get(DriverStatusInfo, "/drivers/status")

    async def go_online(self, location: Location) -> None:
        await self.client.send(
            "POST",
            "/drivers/online",
            json={"latitude": location.latitude, "longitude": location.longitude},
        )

    async def go_offline(self) -> None:
        await self.client.send("POST", "/drivers/offline")

    async def update_location(self, location: Location) -> None:
        await self.client.send("POST", "/drivers/location", json=_point(location))

    # Requests & bids
    async def get_available_trips(
        self, latitude: float, longitude: float, radius_km: Optional[float] = None
    ) -> list[NearbyTrip]:
        params: dict = {"lat": latitude, "lng": longitude}
        if radius_km is not None:
            params["radius"] = radius_km
        return await self.client.get(list[NearbyTrip], "/trips/nearby", params=params)

    async def place_bid(self, trip_id: str, amount: float, eta: Optional[int] = None) -> Bid:
        body: dict = {"tripId": trip_id, "amount": amount}
        if eta is not None:
            body["eta"] = eta
        return await self.client.post(Bid, "/bids", json=body)

    async def get_my_bids(self) -> list[Bid]:
        return await self.client.get(list[Bid], "/bids/my-bids")

    # Active trip
    async def get_active_trip(self) -> Optional[Trip]:
        return await self.client.get(Optional[Trip], "/drivers/active-trip")

    async def arrive_at_pickup(self, trip_id: str) -> Trip:
        return await self.client.post(Trip, f"/trips/{trip_id}/arrive")

    async def start_trip(self, trip_id: str) -> Trip:
        return await self.client.post(Trip, f"/trips/{trip_id}/start")

    async def complete_trip(self, trip_id: str) -> Trip:
        return await self.client.post(Trip, f"/trips/{trip_id}/complete")

    # Daily fee ($1/day)
    async def get_daily_fee_status(self) -> DailyFee:
        return await self.client.get(DailyFee, "/drivers/daily-fee/status")

    async def pay_daily_fee(self, payment_method: str = "wallet", days: int = 1) -> None:
        await self.client.send(
            "POST",
            "/drivers/daily-fee/pay",
            json={"paymentMethod": payment_method, "days": days},
        )

    async def get_daily_fee_history(self) -> DailyFeeHistory:
        return await self.client.get(DailyFeeHistory, "/drivers/daily-fee/history")

    async def get_earnings(self) -> Earnings:
        return await self.client.get(Earnings, "/drivers/earnings")

    # Shifts
    async def start_shift(self) -> None:
        await self.client.send("POST", "/drivers/shift/start")

    async def end_shift(self) -> ShiftSummary:
        return await self.client.post(ShiftSummary, "/drivers/shift/end")

    async def get_current_shift(self) -> Optional[Shift]:
        return await self.client.get(Optional[Shift], "/drivers/shift/current")

    # Vehicles
    async def get_vehicles(self) -> list[Vehicle]:
        return await self.client.get(list[Vehicle], "/drivers/vehicles")

    async def create_vehicle(self, **fields: Any) -> Vehicle:
        return await self.client.post(Vehicle, "/drivers/vehicles", json=fields)

    async def update_vehicle(self, vehicle_id: str, **fields: Any) -> Vehicle:
        return await self.client.put(Vehicle, f"/drivers/vehicles/{vehicle_id}", json=fields)

    async def delete_vehicle(self, vehicle_id: str) -> None:
        await self.client.send("DELETE", f"/drivers/vehicles/{vehicle_id}")

    async def set_active_vehicle(self, vehicle_id: str) -> Vehicle:
        return await self.client.post(Vehicle, f"/drivers/vehicles/{vehicle_id}/activate")


class DocumentsApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_documents(self) -> list[Document]:
        return await self.client.get(list[Document], "/documents")

    async def status(self) -> DocumentChecklist:
        return await self.client.get(DocumentChecklist, "/documents/status")

    async def upload(
        self, doc_type: DocumentType, url: str, expires_at: Optional[str] = None
    ) -> Document:
        body = {"type": DocumentType(doc_type).value, "url": url}
        if expires_at:
            body["expiresAt"] = expires_at
        return await self.client.post(Document, "/documents", json=body)

    async def update(self, document_id: str, **fields: Any) -> Document:
        return await self.client.put(Document, f"/documents/{document_id}", json=fields)

    async def delete(self, document_id: str) -> None:
        await self.client.send("DELETE", f"/documents/{document_id}")


class RidersApi:
    """Saved places and emergency contacts."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_saved_places(self) -> list[SavedPlace]:
        return await self.client.get(list[SavedPlace], "/riders/locations")

    async def create_saved_place(self, **fields: Any) -> SavedPlace:
        return await self.client.post(SavedPlace, "/riders/locations", json=fields)

    async def update_saved_place(self, place_id: str, **fields: Any) -> SavedPlace:
        return await self.client.put(SavedPlace, f"/riders/locations/{place_id}", json=fields)

    async def delete_saved_place(self, place_id: str) -> None:
        await self.client.send("DELETE", f"/riders/locations/{place_id}")

    async def get_emergency_contacts(self) -> list[EmergencyContact]:
        return await self.client.get(list[EmergencyContact], "/riders/emergency-contacts")

    async def create_emergency_contact(self, **fields: Any) -> EmergencyContact:
        return await self.client.post(
            EmergencyContact, "/riders/emergency-contacts", json=fields
        )

    async def update_emergency_contact(self, contact_id: str, **fields: Any) -> EmergencyContact:
        return await self.client.put(
            EmergencyContact, f"/riders/emergency-contacts/{contact_id}", json=fields
        )

    async def delete_emergency_contact(self, contact_id: str) -> None:
        await self.client.send("DELETE", f"/riders/emergency-contacts/{contact_id}")


class PaymentsApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_wallet(self) -> Wallet:
        return await self.client.get(Wallet, "/payments/wallet")

    async def get_history(self, limit: int = 20) -> list[PaymentRecord]:
        return await self.client.get(
            list[PaymentRecord], "/payments/history", params={"limit": limit}
        )

    async def process_payment(self, trip_id: str, amount: float, payment_method: str) -> None:
        await self.client.send(
            "POST",
            "/payments/process",
            json={"tripId": trip_id, "amount": amount, "paymentMethod": payment_method},
        )

    async def request_payout(self, amount: float) -> None:
        await self.client.send("POST", "/payments/driver/payout", json={"amount": amount})


class SupportApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_tickets(self) -> list[SupportTicket]:
        return await self.client.get(list[SupportTicket], "/support/tickets")

    async def create_ticket(
        self, subject: str, category: str, description: str, priority: str = "medium"
    ) -> SupportTicket:
        return await self.client.post(
            SupportTicket,
            "/support/tickets",
            json={
                "subject": subject,
                "category": category,
                "description": description,
                "priority": priority,
            },
        )

    async def get_ticket(self, ticket_id: str) -> SupportTicket:
        return await self.client.get(SupportTicket, f"/support/tickets/{ticket_id}")

    async def close_ticket(self, ticket_id: str) -> SupportTicket:
        return await self.client.put(SupportTicket, f"/support/tickets/{ticket_id}/close")
