"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  ``BookingRepository.compare_and_set`` is
the single write path for lifecycle transitions.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    BookingModel,
    ParkingLocationModel,
    PaymentModel,
    UserModel,
    VehicleModel,
)
from src.domain.calendar import as_utc
from src.domain.entities import (
    Booking,
    BookingWithVehicle,
    DriverAssignment,
    ParkingLocation,
    Payment,
    UserProfile,
)
from src.domain.enums import BookingStatus, UserRole

# Request time until parking starts, then the parking start time
effective_time = func.coalesce(BookingModel.start_time, BookingModel.created_at)


def booking_from_model(row: BookingModel) -> Booking:
    return Booking(
        id=row.id,
        user_id=row.user_id,
        location_id=row.location_id,
        status=BookingStatus(row.status),
        driver_id=row.driver_id,
        slot=row.slot,
        start_time=as_utc(row.start_time),
        end_time=as_utc(row.end_time),
        created_at=as_utc(row.created_at),
    )


def payment_from_model(row: PaymentModel) -> Payment:
    return Payment(
        id=row.id,
        booking_id=row.booking_id,
        amount=Decimal(row.amount),
        method=row.method,
        created_at=as_utc(row.created_at),
    )


def location_from_model(row: ParkingLocationModel) -> ParkingLocation:
    return ParkingLocation(
        id=row.id, name=row.name, address=row.address, manager_id=row.manager_id
    )


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_booking(
        self,
        *,
        user_id: UUID,
        location_id: UUID,
        slot: Optional[str] = None,
        status: BookingStatus = BookingStatus.REQUESTED,
        driver_id: Optional[UUID] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> BookingModel:
        booking = BookingModel(
            user_id=user_id,
            location_id=location_id,
            slot=slot,
            status=status,
            driver_id=driver_id,
            start_time=start_time,
            end_time=end_time,
        )
        if created_at is not None:
            booking.created_at = created_at
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_by_id(self, booking_id: UUID) -> Optional[Booking]:
        # Bypass the identity map so a re-read after a lost race sees the
        # winner's committed row.
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return booking_from_model(row) if row else None

    async def compare_and_set(
        self,
        booking_id: UUID,
        expected: BookingStatus,
        changes: dict[str, Any],
    ) -> bool:
        """Apply *changes* only if the row is still in *expected* status.

        Issued as one ``UPDATE ... WHERE id = :id AND status = :expected``;
        returns False when a concurrent writer moved the booking first.
        """
        result = await self.session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == expected,
            )
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def count_at_location(
        self, location_id: UUID, status: BookingStatus
    ) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(
                BookingModel.location_id == location_id,
                BookingModel.status == status,
            )
        )
        return result.scalar() or 0

    async def count_in_window(
        self, location_id: UUID, start: datetime, end: datetime
    ) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(
                BookingModel.location_id == location_id,
                effective_time >= start,
                effective_time < end,
            )
        )
        return result.scalar() or 0

    async def list_for_user(
        self, user_id: UUID, limit: Optional[int] = None
    ) -> list[Booking]:
        query = (
            select(BookingModel)
            .where(BookingModel.user_id == user_id)
            .order_by(effective_time.desc(), BookingModel.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [booking_from_model(row) for row in result.scalars().all()]

    async def list_for_driver(
        self, driver_id: UUID, statuses: frozenset[BookingStatus]
    ) -> list[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.driver_id == driver_id,
                BookingModel.status.in_(sorted(statuses, key=lambda s: s.value)),
            )
            .order_by(effective_time.desc(), BookingModel.created_at.desc())
        )
        return [booking_from_model(row) for row in result.scalars().all()]

    async def current_for_driver(
        self, driver_id: UUID, statuses: frozenset[BookingStatus]
    ) -> Optional[DriverAssignment]:
        result = await self.session.execute(
            select(
                BookingModel.id,
                BookingModel.status,
                BookingModel.slot,
                VehicleModel.vehicle_number,
                UserModel.name,
                ParkingLocationModel.name,
            )
            .join(UserModel, UserModel.id == BookingModel.user_id)
            .join(
                ParkingLocationModel,
                ParkingLocationModel.id == BookingModel.location_id,
            )
            .outerjoin(VehicleModel, VehicleModel.user_id == BookingModel.user_id)
            .where(
                BookingModel.driver_id == driver_id,
                BookingModel.status.in_(sorted(statuses, key=lambda s: s.value)),
            )
            .order_by(effective_time.desc(), VehicleModel.vehicle_number)
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None
        booking_id, status, slot, vehicle_number, customer, location = row
        return DriverAssignment(
            booking_id=booking_id,
            status=BookingStatus(status),
            slot=slot,
            vehicle_number=vehicle_number,
            customer_name=customer,
            location_name=location,
        )

    async def list_with_vehicle(self, user_id: UUID) -> list[BookingWithVehicle]:
        result = await self.session.execute(
            select(
                BookingModel.id,
                BookingModel.status,
                BookingModel.start_time,
                ParkingLocationModel.name,
                ParkingLocationModel.address,
                VehicleModel.vehicle_number,
                VehicleModel.type,
            )
            .join(
                ParkingLocationModel,
                ParkingLocationModel.id == BookingModel.location_id,
            )
            .outerjoin(VehicleModel, VehicleModel.user_id == BookingModel.user_id)
            .where(BookingModel.user_id == user_id)
            .order_by(effective_time.desc(), VehicleModel.vehicle_number)
        )
        return [
            BookingWithVehicle(
                booking_id=booking_id,
                status=BookingStatus(status),
                start_time=as_utc(start_time),
                location_name=location_name,
                address=address,
                vehicle_number=vehicle_number,
                vehicle_type=vehicle_type,
            )
            for (
                booking_id,
                status,
                start_time,
                location_name,
                address,
                vehicle_number,
                vehicle_type,
            ) in result.all()
        ]

    async def count_for_locations(self, location_ids: list[UUID]) -> int:
        if not location_ids:
            return 0
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(BookingModel.location_id.in_(location_ids))
        )
        return result.scalar() or 0


class PaymentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, *, booking_id: UUID, amount: Decimal, method: Optional[str] = None
    ) -> PaymentModel:
        payment = PaymentModel(booking_id=booking_id, amount=amount, method=method)
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def revenue_in_window(
        self, location_id: UUID, start: datetime, end: datetime
    ) -> Decimal:
        result = await self.session.execute(
            select(func.coalesce(func.sum(PaymentModel.amount), 0))
            .join(BookingModel, BookingModel.id == PaymentModel.booking_id)
            .where(
                BookingModel.location_id == location_id,
                effective_time >= start,
                effective_time < end,
            )
        )
        return Decimal(result.scalar() or 0)

    async def revenue_for_locations(self, location_ids: list[UUID]) -> Decimal:
        if not location_ids:
            return Decimal(0)
        result = await self.session.execute(
            select(func.coalesce(func.sum(PaymentModel.amount), 0))
            .join(BookingModel, BookingModel.id == PaymentModel.booking_id)
            .where(BookingModel.location_id.in_(location_ids))
        )
        return Decimal(result.scalar() or 0)

    async def list_for_user(self, user_id: UUID) -> list[Payment]:
        result = await self.session.execute(
            select(PaymentModel)
            .join(BookingModel, BookingModel.id == PaymentModel.booking_id)
            .where(BookingModel.user_id == user_id)
            .order_by(PaymentModel.created_at.desc(), PaymentModel.id)
        )
        return [payment_from_model(row) for row in result.scalars().all()]


class LocationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        name: str,
        address: Optional[str] = None,
        manager_id: Optional[UUID] = None,
    ) -> ParkingLocationModel:
        location = ParkingLocationModel(
            name=name, address=address, manager_id=manager_id
        )
        self.session.add(location)
        await self.session.flush()
        return location

    async def get_by_id(self, location_id: UUID) -> Optional[ParkingLocationModel]:
        return await self.session.get(ParkingLocationModel, location_id)

    async def list_all(self) -> list[ParkingLocation]:
        result = await self.session.execute(
            select(ParkingLocationModel).order_by(ParkingLocationModel.name)
        )
        return [location_from_model(row) for row in result.scalars().all()]

    async def list_for_manager(self, manager_id: UUID) -> list[ParkingLocation]:
        result = await self.session.execute(
            select(ParkingLocationModel)
            .where(ParkingLocationModel.manager_id == manager_id)
            .order_by(ParkingLocationModel.name)
        )
        return [location_from_model(row) for row in result.scalars().all()]


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, *, name: str, phone: str, role: UserRole = UserRole.RIDER
    ) -> UserModel:
        user = UserModel(name=name, phone=phone, role=role)
        self.session.add(user)
        await self.session.flush()
        return user

    async def add_vehicle(
        self, *, user_id: UUID, vehicle_number: str, vehicle_type: Optional[str] = None
    ) -> VehicleModel:
        vehicle = VehicleModel(
            user_id=user_id, vehicle_number=vehicle_number, type=vehicle_type
        )
        self.session.add(vehicle)
        await self.session.flush()
        return vehicle

    async def get_by_id(self, user_id: UUID) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def get_by_phone(self, phone: str) -> Optional[UserProfile]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.phone == phone)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return UserProfile(id=row.id, name=row.name, role=UserRole(row.role))
