"""
Auth, rider and driver screen logic.

Sessions sit between the UI and the backend: they call the service
wrappers, dispatch to the store, own the background loops, and turn every
backend failure into a ``SessionError`` with a user-facing message.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from hande.config import Settings, settings as default_settings
from hande.domain.entities import AuthResponse, Bid, DailyFee, FareEstimate, Location, Trip
from hande.domain.enums import DriverStatus, TripStatus, UserType
from hande.domain.pricing import FallbackFareStrategy, FareEstimator
from hande.domain.state_machine import can_transition
from hande.infrastructure.http import ApiError
from hande.infrastructure.services import AuthApi, DriversApi, TripsApi
from hande.store.auth import (
    logout as clear_credentials,
    set_auth_loading,
    set_credentials,
    set_user_type,
    update_driver,
)
from hande.store.driver import (
    add_my_bid,
    clear_my_bids,
    reset_online_time,
    restore_driver_status,
    set_active_trip,
    set_current_request,
    set_daily_fee,
    set_driver_status,
    set_earnings,
    update_active_trip_status,
)
from hande.store.store import Store
from hande.store.trip import (
    clear_bids,
    clear_trip,
    set_bids,
    set_current_trip,
    set_fare_estimate,
    set_trip_history,
    set_trip_loading,
)
from hande.workers.location import LocationWatcher, PositionSource, WatchOptions
from hande.workers.nearby import NearbyTripsPoller
from hande.workers.online_clock import OnlineClock
from hande.workers.trip_watcher import TripWatcher

logger = logging.getLogger(__name__)

TripCallback = Callable[[Trip], Union[None, Awaitable[None]]]


class SessionError(Exception):
    """A user-facing failure; ``message`` is safe to show as-is."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(SessionError):
    status_code = 404


class InvalidState(SessionError):
    status_code = 409


def _message(exc: Exception, fallback: str) -> str:
    if isinstance(exc, ApiError) and exc.status_code is not None:
        return exc.message
    return fallback


# ── Auth ──────────────────────────────────────────────────────────────


class AuthSession:
    """Sign-in flows; successful calls land in the auth slice."""

    def __init__(self, store: Store, auth_api: AuthApi):
        self.store = store
        self.auth_api = auth_api

    async def _sign_in(self, call: Awaitable[AuthResponse], fallback: str) -> AuthResponse:
        self.store.dispatch(set_auth_loading(True))
        try:
            auth = await call
        except Exception as exc:
            self.store.dispatch(set_auth_loading(False))
            logger.exception(fallback)
            raise SessionError(_message(exc, fallback)) from exc
        self.store.dispatch(set_credentials(auth))
        return auth

    async def login(self, email: str, password: str) -> AuthResponse:
        return await self._sign_in(self.auth_api.login(email, password), "Login failed")

    async def register(self, **fields) -> AuthResponse:
        return await self._sign_in(self.auth_api.register(**fields), "Registration failed")

    async def google_sign_in(self, **fields) -> AuthResponse:
        async def exchange() -> AuthResponse:
            google = await self.auth_api.google_auth(**fields)
            return AuthResponse(user=google.user, token=google.access_token)

        return await self._sign_in(exchange(), "Google sign-in failed")

    async def switch_role(self, role: UserType) -> AuthResponse:
        auth = await self._sign_in(self.auth_api.switch_role(role), "Failed to switch role")
        self.store.dispatch(set_user_type(role))
        return auth

    async def refresh_profile(self) -> AuthResponse:
        return await self._sign_in(self.auth_api.me(), "Failed to load profile")

    async def logout(self) -> None:
        try:
            await self.auth_api.logout()
        except Exception:
            logger.warning("Logout request failed; clearing local session", exc_info=True)
        self.store.dispatch(clear_credentials())


# ── Rider ─────────────────────────────────────────────────────────────


class RiderSession:
    def __init__(
        self,
        store: Store,
        trips_api: TripsApi,
        config: Settings = default_settings,
        on_trip_finished: Optional[TripCallback] = None,
    ):
        self.store = store
        self.trips_api = trips_api
        self.config = config
        self.on_trip_finished = on_trip_finished
        self.fare_estimator = FareEstimator(
            trips_api,
            FallbackFareStrategy(
                base_fare=config.fallback_base_fare,
                rate_per_km=config.fallback_rate_per_km,
                rate_per_minute=config.fallback_rate_per_minute,
                minimum_fare=config.fallback_minimum_fare,
                minutes_per_km=config.fallback_minutes_per_km,
            ),
        )
        self.watcher: Optional[TripWatcher] = None

    @property
    def current_trip(self) -> Optional[Trip]:
        return self.store.state.trip.current_trip

    def _require_trip(self, trip_id: Optional[str] = None) -> Trip:
        trip = self.current_trip
        if trip is None or (trip_id is not None and trip.id != trip_id):
            raise NotFound("No active trip")
        return trip

    async def estimate_fare(
        self, pickup: Location, dropoff: Location, vehicle_type: str = "sedan"
    ) -> FareEstimate:
        estimate = await self.fare_estimator.estimate(pickup, dropoff, vehicle_type)
        self.store.dispatch(set_fare_estimate(estimate))
        return estimate

    async def book(
        self, pickup: Location, dropoff: Location, vehicle_type: str = "sedan"
    ) -> Trip:
        if self.current_trip is not None and not self.current_trip.is_finished:
            raise InvalidState("You already have an active trip")

        self.store.dispatch(set_trip_loading(True))
        try:
            trip = await self.trips_api.create(pickup, dropoff, vehicle_type)
        except Exception as exc:
            logger.exception("Failed to request ride")
            raise SessionError(
                _message(exc, "Failed to request ride. Please try again.")
            ) from exc
        finally:
            self.store.dispatch(set_trip_loading(False))

        self.store.dispatch(set_current_trip(trip))
        self.store.dispatch(set_bids([]))
        await self.watch()
        return trip

    async def watch(self) -> None:
        """(Re)start the trip/bid polling loop for the current trip."""
        await self.stop_watching()
        if self.current_trip is None:
            return
        self.watcher = TripWatcher(
            self.store,
            self.trips_api,
            on_complete=self._notify,
            bid_interval=self.config.bid_poll_interval_seconds,
            trip_interval=self.config.trip_poll_interval_seconds,
        )
        self.watcher.start()

    async def resume(self) -> Optional[Trip]:
        """Pick up a trip left running on the backend and watch it again."""
        try:
            trip = await self.trips_api.get_current()
        except Exception:
            logger.exception("Failed to fetch current trip")
            return None
        if trip is None:
            return None
        self.store.dispatch(set_current_trip(trip))
        await self.watch()
        return trip

    async def stop_watching(self) -> None:
        watcher, self.watcher = self.watcher, None
        if watcher is not None:
            await watcher.stop()

    async def accept_bid(self, bid_id: str, trip_id: Optional[str] = None) -> Trip:
        trip = self._require_trip(trip_id)
        if trip.status != TripStatus.PENDING:
            raise InvalidState("This trip is no longer taking bids")
        try:
            updated = await self.trips_api.accept_bid(trip.id, bid_id)
        except Exception as exc:
            logger.exception("Failed to accept bid %s", bid_id)
            raise SessionError(_message(exc, "Failed to accept bid")) from exc
        self.store.dispatch(set_current_trip(updated))
        self.store.dispatch(clear_bids())
        return updated

    async def cancel(self, reason: Optional[str] = None, trip_id: Optional[str] = None) -> None:
        trip = self._require_trip(trip_id)
        try:
            await self.trips_api.cancel(trip.id, reason)
        except Exception as exc:
            logger.exception("Failed to cancel trip %s", trip.id)
            raise SessionError(_message(exc, "Failed to cancel trip")) from exc
        await self.stop_watching()
        self.store.dispatch(clear_trip())
        await self._notify(trip.model_copy(update={"status": TripStatus.CANCELLED}))

    async def rate(self, trip_id: str, rating: int, comment: Optional[str] = None) -> None:
        if not 1 <= rating <= 5:
            raise SessionError("Rating must be between 1 and 5")
        try:
            await self.trips_api.rate(trip_id, rating, comment)
        except Exception as exc:
            logger.exception("Failed to rate trip %s", trip_id)
            raise SessionError(_message(exc, "Failed to submit rating")) from exc

    async def load_history(self, page: int = 1, limit: int = 20) -> list[Trip]:
        try:
            result = await self.trips_api.history(page, limit)
        except Exception as exc:
            logger.exception("Failed to fetch trip history")
            raise SessionError(_message(exc, "Failed to load trip history")) from exc
        self.store.dispatch(set_trip_history(result.trips))
        return result.trips

    @property
    def bids(self) -> tuple[Bid, ...]:
        return self.store.state.trip.current_bids

    async def _notify(self, trip: Trip) -> None:
        if self.on_trip_finished is None:
            return
        result = self.on_trip_finished(trip)
        if inspect.isawaitable(result):
            await result

    async def close(self) -> None:
        await self.stop_watching()


# ── Driver ────────────────────────────────────────────────────────────


class DriverSession:
    def __init__(
        self,
        store: Store,
        drivers_api: DriversApi,
        position_source: Optional[PositionSource] = None,
        config: Settings = default_settings,
    ):
        self.store = store
        self.drivers_api = drivers_api
        self.position_source = position_source
        self.config = config
        self.nearby = NearbyTripsPoller(
            store,
            drivers_api,
            interval_seconds=config.nearby_poll_interval_seconds,
            radius_km=config.nearby_radius_km,
        )
        self.clock = OnlineClock(store, config.online_clock_interval_seconds)
        self.location_watch: Optional[LocationWatcher] = None

    @property
    def status(self) -> DriverStatus:
        return self.store.state.driver.status

    def _transition(self, desired: DriverStatus) -> bool:
        before = self.status
        self.store.dispatch(set_driver_status(desired))
        return self.status != before

    async def load_dashboard(self) -> None:
        """Fetch daily fee, earnings and any trip already in progress."""
        try:
            fee, earnings = await asyncio.gather(
                self.drivers_api.get_daily_fee_status(),
                self.drivers_api.get_earnings(),
            )
            self.store.dispatch(set_daily_fee(fee))
            self.store.dispatch(set_earnings(earnings))

            active = await self.drivers_api.get_active_trip()
            if active is not None:
                self.store.dispatch(set_active_trip(active))
                self.store.dispatch(restore_driver_status(active))
                if self.status != DriverStatus.OFFLINE and not self.nearby.running:
                    self.store.dispatch(update_driver({"is_online": True}))
                    self._start_background()
        except Exception:
            logger.exception("Failed to fetch driver data")

    async def refresh_daily_fee(self) -> Optional[DailyFee]:
        """Load the fee status; ``None`` if the backend cannot say."""
        try:
            fee = await self.drivers_api.get_daily_fee_status()
        except Exception:
            logger.exception("Failed to fetch daily fee status")
            return None
        self.store.dispatch(set_daily_fee(fee))
        return fee

    # Going online / offline

    async def go_online(self) -> None:
        here = self.store.state.location.current_location
        if here is None:
            raise SessionError("Unable to get your location. Please enable location services.")

        fee = self.store.state.driver.daily_fee
        if fee is None:
            fee = await self.refresh_daily_fee()
        if fee is not None and not fee.allows_going_online():
            raise SessionError("Please pay your daily fee to go online.")

        if not self._transition(DriverStatus.GOING_ONLINE):
            raise InvalidState(f"Cannot go online while {self.status.value}")
        try:
            await self.drivers_api.go_online(here)
        except Exception as exc:
            self._transition(DriverStatus.OFFLINE)
            logger.exception("Failed to go online")
            raise SessionError(_message(exc, "Failed to go online")) from exc

        self._transition(DriverStatus.ONLINE)
        self.store.dispatch(update_driver({"is_online": True}))
        self._start_background()

    async def go_offline(self) -> None:
        try:
            await self.drivers_api.go_offline()
        except Exception as exc:
            logger.exception("Failed to go offline")
            raise SessionError(_message(exc, "Failed to go offline")) from exc
        self._transition(DriverStatus.OFFLINE)
        self.store.dispatch(update_driver({"is_online": False}))
        self.store.dispatch(reset_online_time())
        await self._stop_background()

    def _start_background(self) -> None:
        self.nearby.start()
        self.clock.start()
        if self.position_source is not None:
            self.location_watch = LocationWatcher(
                self.store,
                self.drivers_api,
                self.position_source,
                WatchOptions(
                    high_accuracy=self.config.location_high_accuracy,
                    maximum_age=self.config.location_max_age_seconds,
                    timeout=self.config.location_timeout_seconds,
                ),
            )
            self.location_watch.start()

    async def _stop_background(self) -> None:
        await self.nearby.stop()
        await self.clock.stop()
        watch, self.location_watch = self.location_watch, None
        if watch is not None:
            await watch.stop()
            await watch.drain()

    # Requests & bidding

    def view_request(self, trip_id: str) -> None:
        request = next(
            (t for t in self.store.state.driver.nearby_trips if t.id == trip_id), None
        )
        if request is None:
            raise NotFound("Trip request is no longer available")
        if self.status not in (DriverStatus.ONLINE, DriverStatus.VIEWING_REQUEST):
            raise InvalidState(f"Cannot view requests while {self.status.value}")
        self.store.dispatch(set_current_request(request))

    def dismiss_request(self) -> None:
        self.store.dispatch(set_current_request(None))
        self._transition(DriverStatus.ONLINE)

    async def place_bid(self, trip_id: str, amount: float, eta: Optional[int] = None) -> Bid:
        if amount <= 0:
            raise SessionError("Bid amount must be positive")
        if not self._transition(DriverStatus.BIDDING):
            raise InvalidState(f"Cannot bid while {self.status.value}")
        try:
            bid = await self.drivers_api.place_bid(trip_id, amount, eta)
        except Exception as exc:
            self._transition(DriverStatus.ONLINE)
            logger.exception("Failed to place bid on %s", trip_id)
            raise SessionError(_message(exc, "Failed to place bid")) from exc

        self.store.dispatch(add_my_bid(bid))
        self.store.dispatch(set_current_request(None))
        self._transition(DriverStatus.BID_PENDING)
        return bid

    async def check_bid_outcome(self) -> Optional[Trip]:
        """Pick up a trip the rider awarded us, if any."""
        try:
            trip = await self.drivers_api.get_active_trip()
        except Exception:
            logger.exception("Failed to fetch active trip")
            return None
        if trip is None:
            return None
        self.store.dispatch(set_active_trip(trip))
        self.store.dispatch(clear_my_bids())
        if self._transition(DriverStatus.ACCEPTED):
            self._transition(DriverStatus.ARRIVING)
        return trip

    # Active trip

    async def update_trip(self, action: str) -> Optional[Trip]:
        trip = self.store.state.driver.active_trip
        if trip is None:
            raise NotFound("No active trip")

        calls = {
            "arrive": (self.drivers_api.arrive_at_pickup, DriverStatus.ARRIVED, TripStatus.ARRIVED),
            "start": (self.drivers_api.start_trip, DriverStatus.IN_PROGRESS, TripStatus.IN_PROGRESS),
            "complete": (self.drivers_api.complete_trip, DriverStatus.COMPLETING, TripStatus.COMPLETED),
        }
        if action not in calls:
            raise SessionError(f"Unknown trip action: {action}")
        call, driver_status, trip_status = calls[action]

        if not can_transition(self.status, driver_status):
            raise InvalidState(f"Cannot {action} while {self.status.value}")
        try:
            updated = await call(trip.id)
        except Exception as exc:
            logger.exception("Failed to %s trip %s", action, trip.id)
            raise SessionError(_message(exc, "Failed to update trip status")) from exc

        self._transition(driver_status)
        if action == "complete":
            self.store.dispatch(set_active_trip(None))
            self._transition(DriverStatus.ONLINE)
            return None

        self.store.dispatch(set_active_trip(updated))
        self.store.dispatch(update_active_trip_status(trip_status))
        return self.store.state.driver.active_trip

    async def pay_daily_fee(self, payment_method: str = "wallet") -> None:
        try:
            await self.drivers_api.pay_daily_fee(payment_method)
            fee = await self.drivers_api.get_daily_fee_status()
        except Exception as exc:
            logger.exception("Daily fee payment failed")
            raise SessionError(_message(exc, "Payment failed")) from exc
        self.store.dispatch(set_daily_fee(fee))

    async def close(self) -> None:
        await self._stop_background()
