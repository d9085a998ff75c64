"""
Async SQLAlchemy store handle.

Uses ``asyncpg`` as the PostgreSQL driver for non-blocking I/O.  The
engine is owned by a ``Database`` object with an explicit
``start()`` / ``stop()`` lifecycle, so nothing connects at import time
and each caller is handed the store it should use.

Connectivity failures (refused connections, dropped sockets, pool
checkout timeouts) are translated into ``Unavailable`` at this boundary;
all other database errors propagate unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.config import Settings
from src.domain.errors import Unavailable

logger = logging.getLogger(__name__)

_CONNECTIVITY_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.TimeoutError,  # pool checkout timeout
    OSError,
    asyncio.TimeoutError,
)


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


@asynccontextmanager
async def translate_errors() -> AsyncIterator[None]:
    """Re-raise store connectivity failures as ``Unavailable``."""
    try:
        yield
    except _CONNECTIVITY_ERRORS as exc:
        logger.warning("Booking store unavailable: %s", exc)
        raise Unavailable("Booking store is unavailable, retry later") from exc
    except sa_exc.DBAPIError as exc:
        if exc.connection_invalidated:
            logger.warning("Booking store connection dropped: %s", exc)
            raise Unavailable("Booking store connection lost, retry later") from exc
        raise


class Database:
    def __init__(self, url: str, **engine_options: Any):
        self.url = url
        self.engine_options = engine_options
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database has not been started")
        return self._engine

    async def start(self) -> None:
        if self._engine is not None:
            return
        self._engine = create_async_engine(self.url, echo=False, **self.engine_options)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Booking store started (%s)", self._engine.url.render_as_string())

    async def stop(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Booking store stopped")

    def session(self) -> AsyncSession:
        if self._session_factory is None:
            raise RuntimeError("Database has not been started")
        return self._session_factory()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session inside one transaction; commit on success,
        roll back on error."""
        async with translate_errors():
            async with self.session() as session:
                async with session.begin():
                    yield session

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[AsyncSession]:
        """Yield a session for read-only queries."""
        async with translate_errors():
            async with self.session() as session:
                yield session

    async def ping(self) -> None:
        async with self.reader() as session:
            await session.execute(text("SELECT 1"))
