"""
Shared test fixtures.

Uses a throw-away SQLite file (via aiosqlite) so tests run without
Docker / PostgreSQL.  A file rather than ``:memory:`` gives every session
its own connection, so concurrent transitions really race on the row.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Optional
from uuid import UUID

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.domain.calendar import utcnow
from src.domain.enums import BookingStatus, UserRole
from src.infrastructure import models  # noqa: F401  (registers tables)
from src.infrastructure.database import Base, Database
from src.infrastructure.repositories import (
    BookingRepository,
    LocationRepository,
    PaymentRepository,
    UserRepository,
)

_PARKED_OR_LATER = (
    BookingStatus.PARKED,
    BookingStatus.RETRIEVING,
    BookingStatus.COMPLETED,
)


@dataclass
class World:
    """Ids of the reference rows every test can rely on."""

    manager_id: UUID
    other_manager_id: UUID
    driver_id: UUID
    other_driver_id: UUID
    rider_id: UUID
    other_rider_id: UUID
    location_id: UUID
    other_location_id: UUID


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables in a fresh SQLite file, yield the store, then stop it."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'valet.db'}")
    await db.start()
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield db

    await db.stop()


@pytest_asyncio.fixture
async def world(database: Database) -> World:
    async with database.transaction() as session:
        users = UserRepository(session)
        locations = LocationRepository(session)

        manager = await users.create(
            name="Neha Kapoor", phone="+911000000001", role=UserRole.MANAGER
        )
        other_manager = await users.create(
            name="Arjun Kumar", phone="+911000000002", role=UserRole.MANAGER
        )
        driver = await users.create(
            name="Ravi Yadav", phone="+911000000011", role=UserRole.DRIVER
        )
        other_driver = await users.create(
            name="Sunil Das", phone="+911000000012", role=UserRole.DRIVER
        )
        rider = await users.create(name="Aarav Sharma", phone="+911000000101")
        other_rider = await users.create(name="Priya Patel", phone="+911000000102")
        await users.add_vehicle(
            user_id=rider.id, vehicle_number="MH01AB1234", vehicle_type="SEDAN"
        )

        location = await locations.create(
            name="Phoenix Mall Valet",
            address="Lower Parel, Mumbai",
            manager_id=manager.id,
        )
        other_location = await locations.create(
            name="Airport T2 Valet",
            address="Andheri East, Mumbai",
            manager_id=other_manager.id,
        )

        return World(
            manager_id=manager.id,
            other_manager_id=other_manager.id,
            driver_id=driver.id,
            other_driver_id=other_driver.id,
            rider_id=rider.id,
            other_rider_id=other_rider.id,
            location_id=location.id,
            other_location_id=other_location.id,
        )


@pytest_asyncio.fixture
async def make_booking(database: Database, world: World):
    """Factory inserting a booking directly in any lifecycle status.

    Fills in ``driver_id`` / ``start_time`` / ``end_time`` so the row
    satisfies the lifecycle check constraints.
    """

    async def _make(
        status: BookingStatus = BookingStatus.REQUESTED,
        *,
        user_id: Optional[UUID] = None,
        location_id: Optional[UUID] = None,
        driver_id: Optional[UUID] = None,
        slot: Optional[str] = None,
        start_time: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        payment: Optional[str] = None,
    ) -> UUID:
        if status is not BookingStatus.REQUESTED and driver_id is None:
            driver_id = world.driver_id
        if status in _PARKED_OR_LATER and start_time is None:
            start_time = utcnow() - timedelta(minutes=30)
        end_time = utcnow() if status is BookingStatus.COMPLETED else None

        async with database.transaction() as session:
            booking = await BookingRepository(session).create_booking(
                user_id=user_id or world.rider_id,
                location_id=location_id or world.location_id,
                status=status,
                driver_id=driver_id,
                slot=slot,
                start_time=start_time,
                end_time=end_time,
                created_at=created_at,
            )
            if payment is not None:
                await PaymentRepository(session).create(
                    booking_id=booking.id, amount=Decimal(payment), method="UPI"
                )
            return booking.id

    return _make


@pytest_asyncio.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient over the app, wired to the SQLite store."""
    from src.api.app import create_app

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
