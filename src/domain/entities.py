"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Booking``: enforces valid lifecycle transitions
  (REQUESTED -> ACTIVE -> PARKED -> RETRIEVING -> COMPLETED) and the
  side effects each one carries (driver link, start / end timestamps).
- The remaining dataclasses are read models returned by the reporting
  views; they never mutate.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from .enums import BOOKING_TRANSITIONS, BookingStatus, UserRole
from .errors import InvalidArgument, InvalidTransition


def next_status(current: BookingStatus, target: BookingStatus) -> BookingStatus:
    """Return *target* if it is reachable from *current*, else raise."""
    if target not in BOOKING_TRANSITIONS.get(current, set()):
        raise InvalidTransition(current, target)
    return target


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Booking:
    id: UUID
    user_id: UUID
    location_id: UUID
    status: BookingStatus = BookingStatus.REQUESTED
    driver_id: Optional[UUID] = None
    slot: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def transition_to(
        self,
        new_status: BookingStatus,
        *,
        at: datetime,
        driver_id: Optional[UUID] = None,
    ) -> None:
        """Move to *new_status* if the transition is legal, else raise.

        *at* stamps ``start_time`` on entry into PARKED and ``end_time``
        on entry into COMPLETED.  *driver_id* is required for ACTIVE.
        """
        try:
            next_status(self.status, new_status)
        except InvalidTransition as exc:
            raise InvalidTransition(exc.current, exc.target, self.id) from None

        if new_status is BookingStatus.ACTIVE:
            if driver_id is None:
                raise InvalidArgument("driver_id is required to assign a driver")
            self.driver_id = driver_id
        elif new_status is BookingStatus.PARKED:
            self.start_time = at
        elif new_status is BookingStatus.COMPLETED:
            self.end_time = at

        self.status = new_status

    def planned(
        self,
        new_status: BookingStatus,
        *,
        at: datetime,
        driver_id: Optional[UUID] = None,
    ) -> "Booking":
        """Return a copy moved to *new_status*; ``self`` is left untouched."""
        copy = replace(self)
        copy.transition_to(new_status, at=at, driver_id=driver_id)
        return copy


# ── Read models ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class UserProfile:
    id: UUID
    name: str
    role: UserRole


@dataclass(frozen=True)
class ParkingLocation:
    id: UUID
    name: str
    address: Optional[str]
    manager_id: Optional[UUID]


@dataclass(frozen=True)
class Payment:
    id: UUID
    booking_id: UUID
    amount: Decimal
    method: Optional[str]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class DriverAssignment:
    """The booking a driver is currently working on."""

    booking_id: UUID
    status: BookingStatus
    slot: Optional[str]
    vehicle_number: Optional[str]
    customer_name: str
    location_name: str


@dataclass(frozen=True)
class BookingWithVehicle:
    booking_id: UUID
    status: BookingStatus
    start_time: Optional[datetime]
    location_name: str
    address: Optional[str]
    vehicle_number: Optional[str]
    vehicle_type: Optional[str]


@dataclass(frozen=True)
class ManagerStats:
    manager_id: UUID
    total_bookings: int
    total_revenue: Decimal
