"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.enums import BookingStatus, UserRole


# ── Requests ──────────────────────────────────────────────────────────


class AssignDriverRequest(BaseModel):
    # Plain strings so malformed ids reach the engine and come back as 400
    booking_id: Optional[str] = None
    driver_id: Optional[str] = None
    expected_status: Optional[BookingStatus] = Field(
        None,
        description="Apply only if the booking is still in this status.",
    )


class TransitionRequest(BaseModel):
    expected_status: Optional[BookingStatus] = Field(
        None,
        description=(
            "Apply only if the booking is still in this status. "
            "Send the same value when retrying after a 503."
        ),
    )


class LoginRequest(BaseModel):
    phone: Optional[str] = None


# ── Responses ─────────────────────────────────────────────────────────


class BookingResponse(BaseModel):
    id: UUID
    user_id: UUID
    driver_id: Optional[UUID] = None
    location_id: UUID
    status: BookingStatus
    slot: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingWithVehicleResponse(BaseModel):
    booking_id: UUID
    status: BookingStatus
    start_time: Optional[datetime] = None
    location_name: str
    address: Optional[str] = None
    vehicle_number: Optional[str] = None
    vehicle_type: Optional[str] = None

    model_config = {"from_attributes": True}


class DriverAssignmentResponse(BaseModel):
    booking_id: UUID
    status: BookingStatus
    slot: Optional[str] = None
    vehicle_number: Optional[str] = None
    customer_name: str
    location_name: str

    model_config = {"from_attributes": True}


class CurrentBookingResponse(BaseModel):
    """``booking`` is null when the driver has nothing in progress."""

    booking: Optional[DriverAssignmentResponse] = None


class PaymentResponse(BaseModel):
    id: UUID
    booking_id: UUID
    amount: Decimal
    method: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LocationResponse(BaseModel):
    id: UUID
    name: str
    address: Optional[str] = None
    manager_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    id: UUID
    name: str
    role: UserRole

    model_config = {"from_attributes": True}


class CountResponse(BaseModel):
    location_id: UUID
    count: int


class RevenueResponse(BaseModel):
    location_id: UUID
    revenue: Decimal


class ManagerStatsResponse(BaseModel):
    manager_id: UUID
    total_bookings: int
    total_revenue: Decimal

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
    detail: str
