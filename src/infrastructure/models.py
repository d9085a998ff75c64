"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``              -- riders, valet drivers and location managers
* ``vehicles``           -- cars registered by riders
* ``parking_locations``  -- valet stands, each run by one manager
* ``bookings``           -- one row per valet session (the lifecycle row)
* ``payments``           -- amounts recorded by the payment system

Indexes
-------
* **B-Tree** on ``bookings(location_id, status)`` for the dashboard
  counters, ``bookings(driver_id, status)`` for the driver app and
  ``bookings(user_id)`` for rider history.
"""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
    func,
)

from .database import Base
from src.domain.enums import BookingStatus, UserRole, enum_values


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    phone = Column(String(20), unique=True, nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.RIDER,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    vehicle_number = Column(String(20), nullable=False)
    type = Column(String(30), nullable=True)

    __table_args__ = (Index("idx_vehicles_user", "user_id"),)


class ParkingLocationModel(Base):
    __tablename__ = "parking_locations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    address = Column(String(255), nullable=True)
    manager_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    __table_args__ = (Index("idx_locations_manager", "manager_id"),)


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    location_id = Column(Uuid, ForeignKey("parking_locations.id"), nullable=False)

    status = Column(
        Enum(BookingStatus, name="booking_status", values_callable=enum_values),
        default=BookingStatus.REQUESTED,
        nullable=False,
    )
    slot = Column(String(20), nullable=True)

    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_bookings_location_status", "location_id", "status"),
        Index("idx_bookings_driver_status", "driver_id", "status"),
        Index("idx_bookings_user", "user_id"),
        CheckConstraint(
            "(status = 'completed') = (end_time IS NOT NULL)",
            name="ck_bookings_end_time_iff_completed",
        ),
        CheckConstraint(
            "status = 'requested' OR driver_id IS NOT NULL",
            name="ck_bookings_driver_once_active",
        ),
        CheckConstraint(
            "status IN ('requested', 'active') OR start_time IS NOT NULL",
            name="ck_bookings_start_time_once_parked",
        ),
    )


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_payments_booking", "booking_id"),)
