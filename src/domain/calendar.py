"""
Calendar helpers for the "today" reporting views.

A day is the half-open interval ``[local midnight, next local midnight)``
in the service's configured time zone, converted to UTC so it can be
compared against ``timestamptz`` columns.  DST days are 23 or 25 hours
long; building both bounds from local midnights handles that.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {name!r}") from exc


def day_window(
    tz_name: str, now: Optional[datetime] = None
) -> tuple[datetime, datetime]:
    """Return the UTC bounds of the local calendar day containing *now*."""
    zone = resolve_zone(tz_name)
    local_now = (now or utcnow()).astimezone(zone)
    today: date = local_now.date()
    start = datetime.combine(today, time.min, tzinfo=zone)
    end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
