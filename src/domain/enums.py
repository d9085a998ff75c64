"""Domain enumerations and state-transition rules."""

import enum


class BookingStatus(str, enum.Enum):
    REQUESTED = "requested"
    ACTIVE = "active"
    PARKED = "parked"
    RETRIEVING = "retrieving"
    COMPLETED = "completed"


# State machine: maps current status -> set of valid next statuses.
# PARKED -> COMPLETED lets a driver hand back the car without a separate
# retrieval step.
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.REQUESTED: {BookingStatus.ACTIVE},
    BookingStatus.ACTIVE: {BookingStatus.PARKED},
    BookingStatus.PARKED: {BookingStatus.RETRIEVING, BookingStatus.COMPLETED},
    BookingStatus.RETRIEVING: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
}

# Lifecycle order, used to check that observed statuses never go backward
BOOKING_ORDER: tuple[BookingStatus, ...] = (
    BookingStatus.REQUESTED,
    BookingStatus.ACTIVE,
    BookingStatus.PARKED,
    BookingStatus.RETRIEVING,
    BookingStatus.COMPLETED,
)

# A driver is "busy" with a booking in any of these
IN_PROGRESS_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.ACTIVE, BookingStatus.PARKED, BookingStatus.RETRIEVING}
)

# Statuses listed on the driver's "active / ongoing" job list
DRIVER_LIST_STATUSES: frozenset[BookingStatus] = IN_PROGRESS_STATUSES


class UserRole(str, enum.Enum):
    RIDER = "rider"
    DRIVER = "driver"
    MANAGER = "manager"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enums by value (``'parked'``) rather than by member name."""
    return [member.value for member in enum_cls]
