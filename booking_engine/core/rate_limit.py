"""Rate limiting configuration for the booking API."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from booking_engine.core.config import settings

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
RATE_LIMITS_ENABLED = not IS_TESTING and settings.RATE_LIMIT_BOOKING > 0

# Single-process deployment: counters live in memory
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=RATE_LIMITS_ENABLED,
)

BOOKING_LIMIT = f"{max(settings.RATE_LIMIT_BOOKING, 1)}/minute"
