"""
Booking Lifecycle Engine
========================

Applies status transitions to bookings:

    requested --assign_driver--> active --start_parking--> parked
    parked --begin_retrieval--> retrieving --complete_retrieval--> completed
    parked --complete_retrieval--> completed

Concurrency safety
------------------
Every transition runs in one transaction:

1. Read the booking and plan the move on the ``Booking`` entity, which
   rejects illegal transitions and computes the side effects
   (``driver_id``, ``start_time``, ``end_time``).
2. Write the planned fields with a compare-and-set
   ``UPDATE ... WHERE id = :id AND status = :observed``.
3. Zero affected rows means another caller moved the booking between
   steps 1 and 2; the booking is re-read and ``InvalidTransition`` is
   raised with the status that caller left behind.

No in-process lock is taken and nothing is retried here: a caller that
gets ``Unavailable`` retries with the same ``expected_status``; if the
first attempt did commit, the retry fails with ``InvalidTransition``
instead of applying the move twice.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import UUID

from src.domain.calendar import utcnow
from src.domain.entities import Booking
from src.domain.enums import BookingStatus, UserRole
from src.domain.errors import InvalidArgument, InvalidTransition, NotFound
from src.domain.identifiers import parse_identifier
from src.infrastructure.database import Database
from src.infrastructure.repositories import BookingRepository, UserRepository

logger = logging.getLogger(__name__)

Identifier = Union[str, UUID]


class LifecycleEngine:
    def __init__(
        self,
        database: Database,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.database = database
        self.clock = clock

    # ── Public API ────────────────────────────────────────────────────

    async def assign_driver(
        self,
        booking_id: Identifier,
        driver_id: Optional[Identifier],
        *,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """Link *driver_id* to a requested booking and make it active."""
        booking_uuid = parse_identifier(booking_id, "booking_id")
        driver_uuid = parse_identifier(driver_id, "driver_id")
        return await self._apply(
            booking_uuid,
            BookingStatus.ACTIVE,
            expected_status,
            driver_id=driver_uuid,
        )

    async def start_parking(
        self,
        booking_id: Identifier,
        *,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        return await self._apply(
            parse_identifier(booking_id, "booking_id"),
            BookingStatus.PARKED,
            expected_status,
        )

    async def begin_retrieval(
        self,
        booking_id: Identifier,
        *,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        return await self._apply(
            parse_identifier(booking_id, "booking_id"),
            BookingStatus.RETRIEVING,
            expected_status,
        )

    async def complete_retrieval(
        self,
        booking_id: Identifier,
        *,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """Hand the car back; accepted from RETRIEVING or straight from PARKED."""
        return await self._apply(
            parse_identifier(booking_id, "booking_id"),
            BookingStatus.COMPLETED,
            expected_status,
        )

    # ── Internals ─────────────────────────────────────────────────────

    async def _apply(
        self,
        booking_id: UUID,
        target: BookingStatus,
        expected_status: Optional[BookingStatus],
        driver_id: Optional[UUID] = None,
    ) -> Booking:
        async with self.database.transaction() as session:
            bookings = BookingRepository(session)

            current = await bookings.get_by_id(booking_id)
            if current is None:
                raise NotFound(f"Booking {booking_id} not found")

            if expected_status is not None and current.status != expected_status:
                raise InvalidTransition(current.status, target, booking_id)

            planned = current.planned(target, at=self.clock(), driver_id=driver_id)
            if driver_id is not None:
                await self._require_driver(UserRepository(session), driver_id)

            won = await bookings.compare_and_set(
                booking_id,
                current.status,
                {
                    "status": planned.status,
                    "driver_id": planned.driver_id,
                    "start_time": planned.start_time,
                    "end_time": planned.end_time,
                },
            )
            if not won:
                observed = await bookings.get_by_id(booking_id)
                if observed is None:
                    raise NotFound(f"Booking {booking_id} not found")
                logger.info(
                    "Booking %s: lost race %s -> %s (now %s)",
                    booking_id,
                    current.status.value,
                    target.value,
                    observed.status.value,
                )
                raise InvalidTransition(observed.status, target, booking_id)

        logger.info(
            "Booking %s: %s -> %s",
            booking_id,
            current.status.value,
            planned.status.value,
        )
        return planned

    @staticmethod
    async def _require_driver(users: UserRepository, driver_id: UUID) -> None:
        driver = await users.get_by_id(driver_id)
        if driver is None:
            raise NotFound(f"Driver {driver_id} not found")
        if UserRole(driver.role) is not UserRole.DRIVER:
            raise InvalidArgument(f"User {driver_id} is not a driver")
