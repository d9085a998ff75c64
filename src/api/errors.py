"""Map domain errors onto HTTP responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from src.domain.errors import (
    InvalidArgument,
    InvalidTransition,
    NotFound,
    Unauthorized,
    Unavailable,
    ValetError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[ValetError], int] = {
    NotFound: 404,
    InvalidArgument: 400,
    InvalidTransition: 409,
    Unavailable: 503,
    Unauthorized: 401,
}


def status_code_for(exc: ValetError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return 500


async def valet_error_handler(request: Request, exc: ValetError) -> JSONResponse:
    status_code = status_code_for(exc)
    headers = {"Retry-After": "1"} if isinstance(exc, Unavailable) else None
    if status_code >= 500:
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "detail": exc.message},
        headers=headers,
    )
