"""
Error taxonomy shared by the lifecycle engine, the reporting views and
the HTTP adapter.

Only ``Unavailable`` is safe for a caller to retry blindly; every other
error describes the request itself.
"""

from __future__ import annotations

from typing import Optional

from .enums import BookingStatus


class ValetError(Exception):
    """Base class for all expected, caller-recoverable failures."""

    kind = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(ValetError):
    kind = "not_found"


class InvalidArgument(ValetError):
    kind = "invalid_argument"


class InvalidTransition(ValetError):
    """The booking is not in a status from which *target* is reachable.

    Also raised when a concurrent caller moved the booking first.
    """

    kind = "invalid_transition"

    def __init__(
        self,
        current: BookingStatus,
        target: BookingStatus,
        booking_id: Optional[object] = None,
    ):
        self.current = current
        self.target = target
        self.booking_id = booking_id
        subject = f"Booking {booking_id}" if booking_id else "Booking"
        super().__init__(
            f"{subject} cannot move from {current.value} to {target.value}"
        )


class Unavailable(ValetError):
    """The booking store could not be reached; the request may be retried."""

    kind = "unavailable"


class Unauthorized(ValetError):
    kind = "unauthorized"
