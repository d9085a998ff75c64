"""
FastAPI application factory.

* Registers routes for the manager console, driver app and rider app.
* Opens / closes the booking store via lifespan events.
* Maps domain errors to HTTP status codes.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.errors import valet_error_handler
from src.api.middleware import limiter
from src.api.routes import admin, driver, manager, riders
from src.config import settings
from src.domain.errors import ValetError
from src.infrastructure.database import Database

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the booking store on startup; stop it on shutdown."""
    database: Database = app.state.database
    await database.start()
    yield
    await database.stop()


def create_app(database: Optional[Database] = None) -> FastAPI:
    app = FastAPI(
        title="Valet Parking API",
        description=(
            "Tracks valet bookings from request to hand-back, with "
            "race-safe status transitions, live location dashboards "
            "and driver / rider self-service."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database or Database.from_settings(settings)

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(ValetError, valet_error_handler)

    # Routers
    app.include_router(manager.router, prefix="/api/v1")
    app.include_router(driver.router, prefix="/api/v1")
    app.include_router(riders.public_router, prefix="/api/v1")
    app.include_router(riders.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root():
        return {"service": "valet-parking", "status": "running"}

    return app
