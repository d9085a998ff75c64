"""Identifier parsing shared by the engine and the reporting views."""

from __future__ import annotations

from typing import Union
from uuid import UUID

from .errors import InvalidArgument


def parse_identifier(value: Union[str, UUID, None], field: str) -> UUID:
    """Return *value* as a UUID or raise ``InvalidArgument``."""
    if isinstance(value, UUID):
        return value
    if value is None or not str(value).strip():
        raise InvalidArgument(f"{field} is required")
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise InvalidArgument(f"{field} is not a valid UUID: {value!r}") from None
