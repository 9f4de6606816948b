"""
FastAPI application factory.

* Registers the session, auth, rider and driver routes.
* Builds the ``SessionContext`` on startup and stops every background
  loop (trip watcher, nearby poller, location watch) on shutdown.
* Maps ``SessionError`` to a JSON ``{"detail": ...}`` with its status code.
* Applies rate-limiting.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hande.api.context import SessionContext
from hande.api.middleware import limiter
from hande.api.routes import auth, driver, rider, session
from hande.config import Settings, settings as default_settings
from hande.infrastructure.token_store import TokenStore
from hande.session import SessionError

logging.basicConfig(level=logging.INFO)


async def _session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(
    config: Optional[Settings] = None,
    token_store: Optional[TokenStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Wire the session on startup; stop its loops on shutdown."""
        app.state.context = SessionContext(config, token_store, transport)
        yield
        await app.state.context.close()

    app = FastAPI(
        title="Hande Session API",
        description=(
            "Local API a rider or driver shell drives: fare quotes with an "
            "offline fallback, trip booking with bid polling, and the driver "
            "status lifecycle with location broadcasting."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(SessionError, _session_error_handler)

    # Routers
    app.include_router(session.router, prefix="/api/v1")
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(rider.router, prefix="/api/v1")
    app.include_router(driver.router, prefix="/api/v1")

    return app
