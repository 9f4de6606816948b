"""
Per-process session wiring.

One ``SessionContext`` holds the backend client, the store and the auth,
rider and driver sessions; the FastAPI app creates it on startup and tears
it down on shutdown.
"""

from __future__ import annotations

from typing import Optional

import httpx

from hande.config import Settings
from hande.infrastructure.http import ApiClient
from hande.infrastructure.services import AuthApi, DriversApi, TripsApi
from hande.infrastructure.token_store import TokenStore
from hande.session import AuthSession, DriverSession, RiderSession
from hande.store.auth import restore_token
from hande.store.store import Store
from hande.workers.location import QueuePositionSource


class SessionContext:
    def __init__(
        self,
        config: Settings,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.token_store = token_store or TokenStore(config.token_path, config.token_ttl_days)
        self.client = ApiClient(
            config.api_url,
            self.token_store,
            timeout=config.request_timeout_seconds,
            transport=transport,
        )
        self.store = Store()
        self.store.dispatch(restore_token(self.token_store.get()))

        self.auth_api = AuthApi(self.client)
        self.trips_api = TripsApi(self.client)
        self.drivers_api = DriversApi(self.client)
        self.positions = QueuePositionSource()

        self.auth = AuthSession(self.store, self.auth_api)
        self.rider = RiderSession(self.store, self.trips_api, config)
        self.driver = DriverSession(self.store, self.drivers_api, self.positions, config)

    async def close(self) -> None:
        await self.rider.close()
        await self.driver.close()
        await self.client.aclose()
