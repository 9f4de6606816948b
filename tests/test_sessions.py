"""
Auth / rider / driver session tests.

Service wrappers are ``AsyncMock`` objects; the store and the polling
loops are real, with millisecond intervals.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from hande.config import Settings
from hande.domain.entities import (
    AuthResponse,
    DailyFee,
    DriverProfile,
    Earnings,
    GoogleAuthResponse,
    TripPage,
    User,
)
from hande.domain.enums import DriverStatus, TripStatus, UserType
from hande.infrastructure.http import ApiError
from hande.session import (
    AuthSession,
    DriverSession,
    InvalidState,
    NotFound,
    RiderSession,
    SessionError,
)
from hande.store.auth import set_credentials
from hande.store.driver import set_daily_fee, set_nearby_trips
from hande.store.location import set_current_location
from hande.store.store import Store
from hande.workers.location import ReplayPositionSource
from tests.conftest import DROPOFF, PICKUP, make_bid, make_nearby, make_trip

FAST = Settings(
    bid_poll_interval_seconds=0.01,
    trip_poll_interval_seconds=0.01,
    nearby_poll_interval_seconds=0.01,
)


async def _until(predicate, attempts: int = 100):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)


# ── Auth ──────────────────────────────────────────────────────────────


def _user(user_type=UserType.RIDER) -> User:
    return User(
        id="u1",
        email="rudo@hande.co.zw",
        first_name="Rudo",
        last_name="Chikore",
        user_type=user_type,
    )


class TestAuthSession:
    def setup_method(self):
        self.store = Store()
        self.auth_api = AsyncMock()
        self.session = AuthSession(self.store, self.auth_api)

    @pytest.mark.asyncio
    async def test_login_fills_auth_slice(self):
        self.auth_api.login.return_value = AuthResponse(user=_user(), token="jwt")

        await self.session.login("rudo@hande.co.zw", "secret")

        auth = self.store.state.auth
        assert auth.is_authenticated
        assert auth.token == "jwt"
        assert auth.user.full_name == "Rudo Chikore"
        assert auth.is_loading is False

    @pytest.mark.asyncio
    async def test_bad_credentials(self):
        self.auth_api.login.side_effect = ApiError("Invalid credentials", 401)

        with pytest.raises(SessionError, match="Invalid credentials"):
            await self.session.login("rudo@hande.co.zw", "wrong")

        assert not self.store.state.auth.is_authenticated
        assert self.store.state.auth.is_loading is False

    @pytest.mark.asyncio
    async def test_register_driver_account(self):
        self.auth_api.register.return_value = AuthResponse(
            user=_user(UserType.DRIVER),
            token="jwt",
            driver=DriverProfile(id="drv-1", user_id="u1"),
        )

        await self.session.register(
            first_name="Rudo",
            last_name="Chikore",
            email="rudo@hande.co.zw",
            password="secret1",
            user_type=UserType.DRIVER,
        )

        assert self.store.state.auth.user_type == UserType.DRIVER
        assert self.store.state.auth.driver.id == "drv-1"

    @pytest.mark.asyncio
    async def test_google_sign_in_uses_access_token(self):
        self.auth_api.google_auth.return_value = GoogleAuthResponse(
            user=_user(), access_token="google-jwt"
        )

        await self.session.google_sign_in(email="rudo@hande.co.zw", google_id="g-42")

        self.auth_api.google_auth.assert_awaited_once_with(
            email="rudo@hande.co.zw", google_id="g-42"
        )
        assert self.store.state.auth.token == "google-jwt"

    @pytest.mark.asyncio
    async def test_switch_role(self):
        self.auth_api.switch_role.return_value = AuthResponse(
            user=_user(UserType.DRIVER), token="driver-jwt"
        )

        await self.session.switch_role(UserType.DRIVER)

        assert self.store.state.auth.user_type == UserType.DRIVER
        assert self.store.state.auth.token == "driver-jwt"

    @pytest.mark.asyncio
    async def test_logout_clears_even_when_backend_fails(self):
        self.auth_api.login.return_value = AuthResponse(user=_user(), token="jwt")
        await self.session.login("rudo@hande.co.zw", "secret")
        self.auth_api.logout.side_effect = ApiError("Network error: down")

        await self.session.logout()

        assert not self.store.state.auth.is_authenticated
        assert self.store.state.auth.user is None


# ── Rider ─────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def rider():
    trips_api = AsyncMock()
    trips_api.get_bids.return_value = []
    finished = MagicMock()
    session = RiderSession(Store(), trips_api, FAST, on_trip_finished=finished)
    yield session
    await session.close()


class TestRiderSession:
    @pytest.mark.asyncio
    async def test_book_starts_bid_polling(self, rider):
        rider.trips_api.create.return_value = make_trip()
        rider.trips_api.get_bids.return_value = [make_bid("b1"), make_bid("b2")]

        trip = await rider.book(PICKUP, DROPOFF, "suv")

        assert trip.status == TripStatus.PENDING
        rider.trips_api.create.assert_awaited_once_with(PICKUP, DROPOFF, "suv")
        await _until(lambda: len(rider.bids) == 2)
        assert [b.id for b in rider.bids] == ["b1", "b2"]
        assert rider.store.state.trip.is_loading is False

    @pytest.mark.asyncio
    async def test_book_twice_rejected(self, rider):
        rider.trips_api.create.return_value = make_trip()
        await rider.book(PICKUP, DROPOFF)

        with pytest.raises(InvalidState):
            await rider.book(PICKUP, DROPOFF)

    @pytest.mark.asyncio
    async def test_book_failure_message(self, rider):
        rider.trips_api.create.side_effect = ApiError("Network error: timed out")

        with pytest.raises(SessionError, match="Failed to request ride"):
            await rider.book(PICKUP, DROPOFF)

        assert rider.current_trip is None
        assert rider.store.state.trip.is_loading is False

    @pytest.mark.asyncio
    async def test_backend_message_passed_through(self, rider):
        rider.trips_api.create.side_effect = ApiError("Pickup outside service area", 400)

        with pytest.raises(SessionError, match="Pickup outside service area"):
            await rider.book(PICKUP, DROPOFF)

    @pytest.mark.asyncio
    async def test_accept_bid_then_completion_notifies_once(self, rider):
        rider.trips_api.create.return_value = make_trip()
        rider.trips_api.get_bids.return_value = [make_bid("b1")]
        rider.trips_api.accept_bid.return_value = make_trip(
            status=TripStatus.ACCEPTED, driver_id="driver-1"
        )
        rider.trips_api.get_by_id.return_value = make_trip(
            status=TripStatus.COMPLETED, driver_id="driver-1"
        )

        await rider.book(PICKUP, DROPOFF)
        await _until(lambda: rider.bids)
        await rider.accept_bid("b1", trip_id="trip-1")
        assert rider.bids == ()

        await _until(lambda: rider.on_trip_finished.called)
        await asyncio.sleep(0.05)

        rider.on_trip_finished.assert_called_once()
        assert rider.current_trip.status == TripStatus.COMPLETED
        assert not rider.watcher.running

    @pytest.mark.asyncio
    async def test_accept_bid_on_unknown_trip(self, rider):
        with pytest.raises(NotFound):
            await rider.accept_bid("b1", trip_id="nope")

    @pytest.mark.asyncio
    async def test_cancel_clears_trip_and_notifies(self, rider):
        rider.trips_api.create.return_value = make_trip()
        await rider.book(PICKUP, DROPOFF)

        await rider.cancel("Changed my mind")

        rider.trips_api.cancel.assert_awaited_once_with("trip-1", "Changed my mind")
        assert rider.current_trip is None
        assert rider.watcher is None
        cancelled = rider.on_trip_finished.call_args.args[0]
        assert cancelled.status == TripStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_rate_out_of_range(self, rider):
        with pytest.raises(SessionError):
            await rider.rate("trip-1", 6)
        rider.trips_api.rate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_estimate_falls_back_and_stores(self, rider):
        rider.trips_api.estimate_fare.side_effect = ApiError("Network error: down")

        estimate = await rider.estimate_fare(PICKUP, DROPOFF)

        assert estimate.estimated_fare == 5.0
        assert rider.store.state.trip.fare_estimate == estimate

    @pytest.mark.asyncio
    async def test_resume_running_trip(self, rider):
        running = make_trip(status=TripStatus.ACCEPTED, driver_id="driver-1")
        rider.trips_api.get_current.return_value = running
        rider.trips_api.get_by_id.return_value = running

        trip = await rider.resume()

        assert trip.id == "trip-1"
        assert rider.current_trip == trip
        assert rider.watcher.running

    @pytest.mark.asyncio
    async def test_resume_without_trip(self, rider):
        rider.trips_api.get_current.return_value = None
        assert await rider.resume() is None
        assert rider.watcher is None

    @pytest.mark.asyncio
    async def test_history_stored(self, rider):
        rider.trips_api.history.return_value = TripPage(
            trips=[make_trip("t1", status=TripStatus.COMPLETED)], total=1
        )

        trips = await rider.load_history(page=2)

        rider.trips_api.history.assert_awaited_once_with(2, 20)
        assert [t.id for t in trips] == ["t1"]
        assert rider.store.state.trip.trip_history == tuple(trips)


# ── Driver ────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def driver():
    drivers_api = AsyncMock()
    drivers_api.get_available_trips.return_value = []
    drivers_api.get_active_trip.return_value = None
    drivers_api.get_daily_fee_status.return_value = DailyFee(is_paid=True)
    store = Store()
    store.dispatch(set_current_location(PICKUP))
    session = DriverSession(store, drivers_api, config=FAST)
    yield session
    await session.close()


async def _online(driver: DriverSession):
    await driver.go_online()
    assert driver.status == DriverStatus.ONLINE


class TestGoingOnline:
    @pytest.mark.asyncio
    async def test_go_online_starts_nearby_polling(self, driver):
        driver.drivers_api.get_available_trips.return_value = [make_nearby("t1")]

        await _online(driver)

        driver.drivers_api.go_online.assert_awaited_once_with(PICKUP)
        await _until(lambda: driver.store.state.driver.nearby_trips)
        assert driver.store.state.driver.nearby_trips[0].id == "t1"

    @pytest.mark.asyncio
    async def test_requires_location(self):
        session = DriverSession(Store(), AsyncMock(), config=FAST)
        with pytest.raises(SessionError, match="location"):
            await session.go_online()
        assert session.status == DriverStatus.OFFLINE

    @pytest.mark.asyncio
    async def test_unpaid_fee_blocks(self, driver):
        driver.store.dispatch(set_daily_fee(DailyFee(is_paid=False)))

        with pytest.raises(SessionError, match="daily fee"):
            await driver.go_online()

        driver.drivers_api.go_online.assert_not_awaited()
        assert driver.status == DriverStatus.OFFLINE

    @pytest.mark.asyncio
    async def test_backend_failure_reverts_to_offline(self, driver):
        driver.drivers_api.go_online.side_effect = RuntimeError("502")

        with pytest.raises(SessionError, match="Failed to go online"):
            await driver.go_online()

        assert driver.status == DriverStatus.OFFLINE
        assert not driver.nearby.running

    @pytest.mark.asyncio
    async def test_already_online(self, driver):
        await _online(driver)
        with pytest.raises(InvalidState):
            await driver.go_online()

    @pytest.mark.asyncio
    async def test_go_offline_stops_loops(self, driver):
        await _online(driver)
        await driver.go_offline()

        assert driver.status == DriverStatus.OFFLINE
        assert not driver.nearby.running
        assert driver.store.state.driver.online_time == 0

    @pytest.mark.asyncio
    async def test_location_watch_forwards_fixes(self):
        drivers_api = AsyncMock()
        drivers_api.get_available_trips.return_value = []
        drivers_api.get_daily_fee_status.return_value = DailyFee(is_paid=True)
        store = Store()
        store.dispatch(set_current_location(PICKUP))
        session = DriverSession(
            store, drivers_api, ReplayPositionSource([PICKUP, DROPOFF]), FAST
        )

        await session.go_online()
        await _until(lambda: drivers_api.update_location.await_count == 2)
        await session.close()

        assert store.state.location.current_location == DROPOFF
        assert store.state.location.is_tracking is False

    @pytest.mark.asyncio
    async def test_load_dashboard(self, driver):
        fee = DailyFee(is_paid=True)
        driver.drivers_api.get_daily_fee_status.return_value = fee
        driver.drivers_api.get_earnings.return_value = Earnings(today=12.5)
        driver.drivers_api.get_active_trip.return_value = make_trip(
            status=TripStatus.IN_PROGRESS, driver_id="d1"
        )

        await driver.load_dashboard()

        state = driver.store.state.driver
        assert state.daily_fee == fee
        assert state.earnings.today == 12.5
        assert state.active_trip.id == "trip-1"
        assert state.status == DriverStatus.IN_PROGRESS
        assert driver.nearby.running

    @pytest.mark.asyncio
    async def test_restored_trip_can_be_completed(self, driver):
        driver.drivers_api.get_earnings.return_value = Earnings()
        driver.drivers_api.get_active_trip.return_value = make_trip(
            status=TripStatus.IN_PROGRESS, driver_id="d1"
        )
        driver.drivers_api.complete_trip.return_value = make_trip(
            status=TripStatus.COMPLETED, driver_id="d1"
        )
        await driver.load_dashboard()

        assert await driver.update_trip("complete") is None

        driver.drivers_api.complete_trip.assert_awaited_once_with("trip-1")
        assert driver.status == DriverStatus.ONLINE
        assert driver.store.state.driver.active_trip is None

    @pytest.mark.asyncio
    async def test_restored_pickup_resumes_at_arrive(self, driver):
        driver.drivers_api.get_earnings.return_value = Earnings()
        driver.drivers_api.get_active_trip.return_value = make_trip(
            status=TripStatus.ACCEPTED, driver_id="d1"
        )
        driver.drivers_api.arrive_at_pickup.return_value = make_trip(
            status=TripStatus.ARRIVED, driver_id="d1"
        )
        await driver.load_dashboard()
        assert driver.status == DriverStatus.ARRIVING

        await driver.update_trip("arrive")
        assert driver.status == DriverStatus.ARRIVED

    @pytest.mark.asyncio
    async def test_unknown_fee_fetched_before_going_online(self, driver):
        driver.drivers_api.get_daily_fee_status.return_value = DailyFee(is_paid=False)

        with pytest.raises(SessionError, match="daily fee"):
            await driver.go_online()

        driver.drivers_api.get_daily_fee_status.assert_awaited_once()
        driver.drivers_api.go_online.assert_not_awaited()
        assert driver.store.state.driver.daily_fee.is_paid is False
        assert driver.status == DriverStatus.OFFLINE

    @pytest.mark.asyncio
    async def test_loaded_fee_not_fetched_again(self, driver):
        driver.store.dispatch(set_daily_fee(DailyFee(is_paid=True)))
        await _online(driver)
        driver.drivers_api.get_daily_fee_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fee_lookup_failure_does_not_block(self, driver):
        driver.drivers_api.get_daily_fee_status.side_effect = ApiError("Network error: down")

        await _online(driver)

        assert driver.store.state.driver.daily_fee is None
        driver.drivers_api.go_online.assert_awaited_once_with(PICKUP)

    @pytest.mark.asyncio
    async def test_online_flag_follows_driver_profile(self, driver):
        driver.store.dispatch(
            set_credentials(
                AuthResponse(
                    user=User(
                        id="u2",
                        email="tendai@hande.co.zw",
                        first_name="Tendai",
                        last_name="Moyo",
                        user_type=UserType.DRIVER,
                    ),
                    token="jwt",
                    driver=DriverProfile(id="drv-1", user_id="u2"),
                )
            )
        )

        await _online(driver)
        assert driver.store.state.auth.driver.is_online

        await driver.go_offline()
        assert not driver.store.state.auth.driver.is_online


class TestBidFlow:
    @pytest.mark.asyncio
    async def test_full_trip(self, driver):
        await _online(driver)
        driver.store.dispatch(set_nearby_trips([make_nearby("trip-1")]))

        driver.view_request("trip-1")
        assert driver.status == DriverStatus.VIEWING_REQUEST

        driver.drivers_api.place_bid.return_value = make_bid("b1", amount=7.0)
        await driver.place_bid("trip-1", 7.0, eta=3)
        assert driver.status == DriverStatus.BID_PENDING
        assert [b.id for b in driver.store.state.driver.my_bids] == ["b1"]
        assert driver.store.state.driver.current_request is None

        driver.drivers_api.get_active_trip.return_value = make_trip(
            status=TripStatus.ACCEPTED, driver_id="d1"
        )
        trip = await driver.check_bid_outcome()
        assert trip.id == "trip-1"
        assert driver.status == DriverStatus.ARRIVING
        assert driver.store.state.driver.my_bids == ()

        driver.drivers_api.arrive_at_pickup.return_value = make_trip(
            status=TripStatus.ARRIVED, driver_id="d1"
        )
        await driver.update_trip("arrive")
        assert driver.status == DriverStatus.ARRIVED

        driver.drivers_api.start_trip.return_value = make_trip(
            status=TripStatus.IN_PROGRESS, driver_id="d1"
        )
        updated = await driver.update_trip("start")
        assert updated.status == TripStatus.IN_PROGRESS
        assert driver.status == DriverStatus.IN_PROGRESS

        driver.drivers_api.complete_trip.return_value = make_trip(
            status=TripStatus.COMPLETED, driver_id="d1"
        )
        assert await driver.update_trip("complete") is None
        assert driver.status == DriverStatus.ONLINE
        assert driver.store.state.driver.active_trip is None

    @pytest.mark.asyncio
    async def test_failed_bid_returns_to_online(self, driver):
        await _online(driver)
        driver.drivers_api.place_bid.side_effect = RuntimeError("500")

        with pytest.raises(SessionError, match="Failed to place bid"):
            await driver.place_bid("trip-1", 7.0)

        assert driver.status == DriverStatus.ONLINE

    @pytest.mark.asyncio
    async def test_bid_while_offline_rejected(self, driver):
        with pytest.raises(InvalidState):
            await driver.place_bid("trip-1", 7.0)
        driver.drivers_api.place_bid.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_positive_bid(self, driver):
        await _online(driver)
        with pytest.raises(SessionError):
            await driver.place_bid("trip-1", 0)

    @pytest.mark.asyncio
    async def test_view_missing_request(self, driver):
        await _online(driver)
        with pytest.raises(NotFound):
            driver.view_request("gone")

    @pytest.mark.asyncio
    async def test_dismiss_returns_to_online(self, driver):
        await _online(driver)
        driver.store.dispatch(set_nearby_trips([make_nearby("trip-1")]))
        driver.view_request("trip-1")

        driver.dismiss_request()

        assert driver.status == DriverStatus.ONLINE
        assert driver.store.state.driver.current_request is None

    @pytest.mark.asyncio
    async def test_no_award_yet(self, driver):
        assert await driver.check_bid_outcome() is None
        assert driver.status == DriverStatus.OFFLINE

    @pytest.mark.asyncio
    async def test_cannot_skip_to_start(self, driver):
        await _online(driver)
        driver.store.dispatch(set_nearby_trips([make_nearby("trip-1")]))
        driver.drivers_api.place_bid.return_value = make_bid("b1")
        await driver.place_bid("trip-1", 6.0)
        driver.drivers_api.get_active_trip.return_value = make_trip(
            status=TripStatus.ACCEPTED, driver_id="d1"
        )
        await driver.check_bid_outcome()

        with pytest.raises(InvalidState):
            await driver.update_trip("start")

        driver.drivers_api.start_trip.assert_not_awaited()
        assert driver.status == DriverStatus.ARRIVING

    @pytest.mark.asyncio
    async def test_pay_daily_fee_refreshes(self, driver):
        driver.store.dispatch(set_daily_fee(DailyFee(is_paid=False)))
        driver.drivers_api.get_daily_fee_status.return_value = DailyFee(is_paid=True)

        await driver.pay_daily_fee("ecocash")

        driver.drivers_api.pay_daily_fee.assert_awaited_once_with("ecocash")
        assert driver.store.state.driver.daily_fee.is_paid
        await _online(driver)
