"""
Driver app endpoints
====================

GET  /api/v1/driver/current/{driver_id}          -- booking in progress, if any
GET  /api/v1/driver/bookings/{driver_id}         -- active / ongoing job list
POST /api/v1/driver/start-parking/{booking_id}   -- active -> parked
POST /api/v1/driver/begin-retrieval/{booking_id} -- parked -> retrieving
POST /api/v1/driver/retrieve/{booking_id}        -- parked | retrieving -> completed

Transition routes take an optional ``{"expected_status": ...}`` body and
answer 409 when the booking is not (or no longer) in a status the move
is allowed from.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_lifecycle, get_reporting, require_api_key
from src.api.middleware import limiter
from src.api.schemas import (
    BookingResponse,
    CurrentBookingResponse,
    DriverAssignmentResponse,
    ErrorResponse,
    TransitionRequest,
)
from src.config import settings
from src.services.lifecycle import LifecycleEngine
from src.services.reporting import ReportingService

router = APIRouter(
    prefix="/driver",
    tags=["driver"],
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


def _expected(body: Optional[TransitionRequest]):
    return body.expected_status if body else None


@router.get(
    "/current/{driver_id}",
    response_model=CurrentBookingResponse,
    summary="The driver's booking in progress",
    description="Returns ``{\"booking\": null}`` when the driver is free.",
)
@limiter.limit(settings.rate_limit)
async def current_booking(
    request: Request,
    driver_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    assignment = await reporting.current_driver_booking(driver_id)
    if assignment is None:
        return CurrentBookingResponse(booking=None)
    return CurrentBookingResponse(
        booking=DriverAssignmentResponse.model_validate(assignment)
    )


@router.get(
    "/bookings/{driver_id}",
    response_model=list[BookingResponse],
    summary="The driver's active and ongoing bookings, newest first",
)
@limiter.limit(settings.rate_limit)
async def driver_bookings(
    request: Request,
    driver_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.driver_bookings(driver_id)


@router.post(
    "/start-parking/{booking_id}",
    response_model=BookingResponse,
    summary="Start parking (ACTIVE -> PARKED)",
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def start_parking(
    request: Request,
    booking_id: str,
    body: Optional[TransitionRequest] = None,
    lifecycle: LifecycleEngine = Depends(get_lifecycle),
):
    return await lifecycle.start_parking(booking_id, expected_status=_expected(body))


@router.post(
    "/begin-retrieval/{booking_id}",
    response_model=BookingResponse,
    summary="Begin retrieval (PARKED -> RETRIEVING)",
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def begin_retrieval(
    request: Request,
    booking_id: str,
    body: Optional[TransitionRequest] = None,
    lifecycle: LifecycleEngine = Depends(get_lifecycle),
):
    return await lifecycle.begin_retrieval(
        booking_id, expected_status=_expected(body)
    )


@router.post(
    "/retrieve/{booking_id}",
    response_model=BookingResponse,
    summary="Hand the car back (PARKED | RETRIEVING -> COMPLETED)",
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def complete_retrieval(
    request: Request,
    booking_id: str,
    body: Optional[TransitionRequest] = None,
    lifecycle: LifecycleEngine = Depends(get_lifecycle),
):
    return await lifecycle.complete_retrieval(
        booking_id, expected_status=_expected(body)
    )
