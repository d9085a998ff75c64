"""FastAPI dependency injection helpers."""

import secrets
from typing import Optional

from fastapi import Depends, Header, Request

from src.config import settings
from src.domain.errors import Unauthorized
from src.infrastructure.database import Database
from src.services.lifecycle import LifecycleEngine
from src.services.reporting import ReportingService


def get_database(request: Request) -> Database:
    """Return the store handle opened by the application lifespan."""
    return request.app.state.database


def get_lifecycle(database: Database = Depends(get_database)) -> LifecycleEngine:
    return LifecycleEngine(database)


def get_reporting(database: Database = Depends(get_database)) -> ReportingService:
    return ReportingService(database)


async def require_api_key(
    x_api_key: Optional[str] = Header(None, alias="x-api-key"),
) -> None:
    """Reject the request unless it carries the shared secret."""
    if not x_api_key:
        raise Unauthorized("API key missing")
    if not settings.api_key or not secrets.compare_digest(
        x_api_key.encode(), settings.api_key.encode()
    ):
        raise Unauthorized("Invalid API key")
