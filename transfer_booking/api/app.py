"""
FastAPI application factory.

* Registers routes for drafts, places/handoff and admin.
* Closes the shared maps HTTP client and Redis client on shutdown.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from transfer_booking.api.dependencies import close_maps_client
from transfer_booking.api.middleware import limiter
from transfer_booking.api.routes import admin, drafts, places
from transfer_booking.infrastructure.redis_client import close_redis

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_maps_client()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Transfer Booking API",
        description=(
            "Hosts booking-wizard sessions for airport and city transfers: "
            "draft editing with live route lookup and pricing, vehicle "
            "selection by capacity, and landing-page handoff."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(drafts.router, prefix="/api/v1")
    app.include_router(places.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
