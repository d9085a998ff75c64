"""
Manager console endpoints
=========================

GET  /api/v1/manager/active-cars/{location_id}    -- cars parked right now
GET  /api/v1/manager/retrieving/{location_id}     -- cars being fetched
GET  /api/v1/manager/today-bookings/{location_id} -- bookings today
GET  /api/v1/manager/revenue/{location_id}        -- payments today
GET  /api/v1/manager/locations/{manager_id}       -- locations they run
GET  /api/v1/manager/stats/{manager_id}           -- totals across locations
POST /api/v1/manager/assign-driver                -- requested -> active

All routes require the ``x-api-key`` header.
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_lifecycle, get_reporting, require_api_key
from src.api.middleware import limiter
from src.api.schemas import (
    AssignDriverRequest,
    BookingResponse,
    CountResponse,
    ErrorResponse,
    LocationResponse,
    ManagerStatsResponse,
    RevenueResponse,
)
from src.config import settings
from src.services.lifecycle import LifecycleEngine
from src.services.reporting import ReportingService

router = APIRouter(
    prefix="/manager",
    tags=["manager"],
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.get(
    "/active-cars/{location_id}",
    response_model=CountResponse,
    summary="Count cars currently parked at a location",
)
@limiter.limit(settings.rate_limit)
async def active_cars(
    request: Request,
    location_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    count = await reporting.count_active_cars(location_id)
    return CountResponse(location_id=location_id, count=count)


@router.get(
    "/retrieving/{location_id}",
    response_model=CountResponse,
    summary="Count cars being retrieved at a location",
)
@limiter.limit(settings.rate_limit)
async def retrieving(
    request: Request,
    location_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    count = await reporting.count_retrieving(location_id)
    return CountResponse(location_id=location_id, count=count)


@router.get(
    "/today-bookings/{location_id}",
    response_model=CountResponse,
    summary="Count today's bookings at a location",
)
@limiter.limit(settings.rate_limit)
async def today_bookings(
    request: Request,
    location_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    count = await reporting.count_today_bookings(location_id)
    return CountResponse(location_id=location_id, count=count)


@router.get(
    "/revenue/{location_id}",
    response_model=RevenueResponse,
    summary="Sum today's payments at a location",
)
@limiter.limit(settings.rate_limit)
async def revenue(
    request: Request,
    location_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    total = await reporting.revenue_today(location_id)
    return RevenueResponse(location_id=location_id, revenue=total)


@router.get(
    "/locations/{manager_id}",
    response_model=list[LocationResponse],
    summary="List the locations a manager runs",
)
@limiter.limit(settings.rate_limit)
async def manager_locations(
    request: Request,
    manager_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.manager_locations(manager_id)


@router.get(
    "/stats/{manager_id}",
    response_model=ManagerStatsResponse,
    summary="Total bookings and revenue across a manager's locations",
)
@limiter.limit(settings.rate_limit)
async def manager_stats(
    request: Request,
    manager_id: str,
    reporting: ReportingService = Depends(get_reporting),
):
    return await reporting.manager_stats(manager_id)


@router.post(
    "/assign-driver",
    response_model=BookingResponse,
    summary="Assign a driver to a requested booking",
    description=(
        "Moves a REQUESTED booking to ACTIVE and links the driver. "
        "Fails with 409 if the booking already has a driver or has moved on."
    ),
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def assign_driver(
    request: Request,
    body: AssignDriverRequest,
    lifecycle: LifecycleEngine = Depends(get_lifecycle),
):
    return await lifecycle.assign_driver(
        body.booking_id,
        body.driver_id,
        expected_status=body.expected_status,
    )
