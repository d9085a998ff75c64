"""
Rider app endpoints
===================

GET  /api/v1/locations                        -- all valet stands (public)
POST /api/v1/login                            -- look a user up by phone (public)
GET  /api/v1/bookings/recent/{user_id}        -- latest bookings
GET  /api/v1/bookings/history/{user_id}       -- every booking, newest first
GET  /api/v1/bookings/with-vehicle/{user_id}  -- bookings + location + vehicle
GET  /api/v1/bookings/{booking_id}            -- one booking
GET  /api/v1/payments/{user_id}               -- payments for the user's bookings
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_reporting, require_api_key
from src.api.middleware import limiter
from src.api.schemas import (
    BookingResponse,
    BookingWithVehicleResponse,
    ErrorResponse,
    LocationResponse,
    LoginRequest,
    PaymentResponse,
    UserResponse,
)
from src.config import settings
from src.services.reporting import ReportingService

_errors = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

public_router = APIRouter(tags=["riders"], responses=_errors)
router = APIRouter(
    tags=["riders"],
    dependencies=[Depends(require_api_key)],
    responses=_errors,
)


@public_router.get(
    "/locations",
    response_model=list[LocationResponse],
    summary="List parking locations",
)
@limiter.limit(settings.rate_limit)
async def list_locations(
    request: Request,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.list_locations()


@public_router.post(
    "/login",
    response_model=UserResponse,
    summary="Look up a user by phone number",
)
@limiter.limit(settings.rate_limit)
async def login(
    request: Request,
    body: LoginRequest,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.find_user_by_phone(body.phone)


@router.get(
    "/bookings/recent/{user_id}",
    response_model=list[BookingResponse],
    summary="Most recent bookings for a user",
)
@limiter.limit(settings.rate_limit)
async def recent_bookings(
    request: Request,
    user_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.recent_bookings(user_id)


@router.get(
    "/bookings/history/{user_id}",
    response_model=list[BookingResponse],
    summary="Full booking history for a user",
)
@limiter.limit(settings.rate_limit)
async def booking_history(
    request: Request,
    user_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.booking_history(user_id)


@router.get(
    "/bookings/with-vehicle/{user_id}",
    response_model=list[BookingWithVehicleResponse],
    summary="Bookings for a user with location and vehicle details",
)
@limiter.limit(settings.rate_limit)
async def bookings_with_vehicle(
    request: Request,
    user_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.bookings_with_vehicle(user_id)


@router.get(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
@limiter.limit(settings.rate_limit)
async def get_booking(
    request: Request,
    booking_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.get_booking(booking_id)


@router.get(
    "/payments/{user_id}",
    response_model=list[PaymentResponse],
    summary="Payments linked to a user's bookings",
)
@limiter.limit(settings.rate_limit)
async def user_payments(
    request: Request,
    user_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.user_payments(user_id)
