"""
Aggregation views over the booking store.

Read-only: no locks, no writes.  A view may observe a booking halfway
through a concurrent transition; dashboards tolerate that skew.

Views keyed by a location, user, manager or driver check that the key
exists first, so ``NotFound`` (unknown key) and an empty result (known
key, nothing to report) stay distinct.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.calendar import day_window, resolve_zone, utcnow
from src.domain.entities import (
    Booking,
    BookingWithVehicle,
    DriverAssignment,
    ManagerStats,
    ParkingLocation,
    Payment,
    UserProfile,
)
from src.domain.enums import (
    DRIVER_LIST_STATUSES,
    IN_PROGRESS_STATUSES,
    BookingStatus,
    UserRole,
)
from src.domain.errors import InvalidArgument, NotFound
from src.domain.identifiers import parse_identifier
from src.infrastructure.database import Database
from src.infrastructure.repositories import (
    BookingRepository,
    LocationRepository,
    PaymentRepository,
    UserRepository,
)

Identifier = Union[str, UUID]


class ReportingService:
    def __init__(
        self,
        database: Database,
        timezone: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.database = database
        self.timezone = timezone or settings.service_timezone
        resolve_zone(self.timezone)
        self.clock = clock

    # ── Location dashboard ────────────────────────────────────────────

    async def count_active_cars(self, location_id: Identifier) -> int:
        """Cars currently parked at the location."""
        return await self._count_status(location_id, BookingStatus.PARKED)

    async def count_retrieving(self, location_id: Identifier) -> int:
        return await self._count_status(location_id, BookingStatus.RETRIEVING)

    async def count_today_bookings(self, location_id: Identifier) -> int:
        location_uuid = parse_identifier(location_id, "location_id")
        start, end = day_window(self.timezone, self.clock())
        async with self.database.reader() as session:
            await self._require_location(session, location_uuid)
            return await BookingRepository(session).count_in_window(
                location_uuid, start, end
            )

    async def revenue_today(self, location_id: Identifier) -> Decimal:
        location_uuid = parse_identifier(location_id, "location_id")
        start, end = day_window(self.timezone, self.clock())
        async with self.database.reader() as session:
            await self._require_location(session, location_uuid)
            return await PaymentRepository(session).revenue_in_window(
                location_uuid, start, end
            )

    async def list_locations(self) -> list[ParkingLocation]:
        async with self.database.reader() as session:
            return await LocationRepository(session).list_all()

    # ── Manager ───────────────────────────────────────────────────────

    async def manager_locations(
        self, manager_id: Identifier
    ) -> list[ParkingLocation]:
        manager_uuid = parse_identifier(manager_id, "manager_id")
        async with self.database.reader() as session:
            await self._require_user(session, manager_uuid, UserRole.MANAGER)
            return await LocationRepository(session).list_for_manager(manager_uuid)

    async def manager_stats(self, manager_id: Identifier) -> ManagerStats:
        """Totals across every location the manager runs.

        Bookings without a payment still count towards ``total_bookings``.
        """
        manager_uuid = parse_identifier(manager_id, "manager_id")
        async with self.database.reader() as session:
            await self._require_user(session, manager_uuid, UserRole.MANAGER)
            locations = await LocationRepository(session).list_for_manager(
                manager_uuid
            )
            location_ids = [loc.id for loc in locations]
            total_bookings = await BookingRepository(session).count_for_locations(
                location_ids
            )
            total_revenue = await PaymentRepository(session).revenue_for_locations(
                location_ids
            )
        return ManagerStats(
            manager_id=manager_uuid,
            total_bookings=total_bookings,
            total_revenue=total_revenue,
        )

    # ── Rider self-service ────────────────────────────────────────────

    async def get_booking(self, booking_id: Identifier) -> Booking:
        booking_uuid = parse_identifier(booking_id, "booking_id")
        async with self.database.reader() as session:
            booking = await BookingRepository(session).get_by_id(booking_uuid)
        if booking is None:
            raise NotFound(f"Booking {booking_uuid} not found")
        return booking

    async def recent_bookings(
        self, user_id: Identifier, limit: Optional[int] = None
    ) -> list[Booking]:
        limit = settings.recent_bookings_limit if limit is None else limit
        if limit < 1:
            raise InvalidArgument("limit must be at least 1")
        user_uuid = parse_identifier(user_id, "user_id")
        async with self.database.reader() as session:
            await self._require_user(session, user_uuid)
            return await BookingRepository(session).list_for_user(
                user_uuid, limit=limit
            )

    async def booking_history(self, user_id: Identifier) -> list[Booking]:
        user_uuid = parse_identifier(user_id, "user_id")
        async with self.database.reader() as session:
            await self._require_user(session, user_uuid)
            return await BookingRepository(session).list_for_user(user_uuid)

    async def bookings_with_vehicle(
        self, user_id: Identifier
    ) -> list[BookingWithVehicle]:
        user_uuid = parse_identifier(user_id, "user_id")
        async with self.database.reader() as session:
            await self._require_user(session, user_uuid)
            return await BookingRepository(session).list_with_vehicle(user_uuid)

    async def user_payments(self, user_id: Identifier) -> list[Payment]:
        user_uuid = parse_identifier(user_id, "user_id")
        async with self.database.reader() as session:
            await self._require_user(session, user_uuid)
            return await PaymentRepository(session).list_for_user(user_uuid)

    async def find_user_by_phone(self, phone: Optional[str]) -> UserProfile:
        """Phone lookup behind the apps' login screen (not a session)."""
        phone = (phone or "").strip()
        if not phone:
            raise InvalidArgument("phone is required")
        async with self.database.reader() as session:
            user = await UserRepository(session).get_by_phone(phone)
        if user is None:
            raise NotFound("User not found")
        return user

    # ── Driver app ────────────────────────────────────────────────────

    async def current_driver_booking(
        self, driver_id: Identifier
    ) -> Optional[DriverAssignment]:
        """The driver's in-progress booking, or None when they are free."""
        driver_uuid = parse_identifier(driver_id, "driver_id")
        async with self.database.reader() as session:
            await self._require_user(session, driver_uuid, UserRole.DRIVER)
            return await BookingRepository(session).current_for_driver(
                driver_uuid, IN_PROGRESS_STATUSES
            )

    async def driver_bookings(self, driver_id: Identifier) -> list[Booking]:
        driver_uuid = parse_identifier(driver_id, "driver_id")
        async with self.database.reader() as session:
            await self._require_user(session, driver_uuid, UserRole.DRIVER)
            return await BookingRepository(session).list_for_driver(
                driver_uuid, DRIVER_LIST_STATUSES
            )

    # ── Ops ───────────────────────────────────────────────────────────

    async def health(self) -> None:
        await self.database.ping()

    # ── Internals ─────────────────────────────────────────────────────

    async def _count_status(
        self, location_id: Identifier, status: BookingStatus
    ) -> int:
        location_uuid = parse_identifier(location_id, "location_id")
        async with self.database.reader() as session:
            await self._require_location(session, location_uuid)
            return await BookingRepository(session).count_at_location(
                location_uuid, status
            )

    @staticmethod
    async def _require_location(session: AsyncSession, location_id: UUID) -> None:
        if await LocationRepository(session).get_by_id(location_id) is None:
            raise NotFound(f"Location {location_id} not found")

    @staticmethod
    async def _require_user(
        session: AsyncSession,
        user_id: UUID,
        role: Optional[UserRole] = None,
    ) -> None:
        user = await UserRepository(session).get_by_id(user_id)
        label = role.value.capitalize() if role else "User"
        if user is None or (role is not None and UserRole(user.role) is not role):
            raise NotFound(f"{label} {user_id} not found")
