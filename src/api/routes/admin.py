"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- checks the booking store answers ``SELECT 1``
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_reporting
from src.api.schemas import ErrorResponse, HealthResponse
from src.services.reporting import ReportingService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    responses={503: {"model": ErrorResponse}},
)
async def health(reporting: ReportingService = Depends(get_reporting)):
    await reporting.health()
    return HealthResponse()
