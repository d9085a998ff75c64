"""
Rate limiting shared by every router.

Limits are counted per client address.  The default ``memory://``
storage is per-process; set ``RATE_LIMIT_STORAGE_URI=redis://...`` so
several API workers share one budget.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from src.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
)
