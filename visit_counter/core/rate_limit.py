"""
Rate Limiting Configuration

This module provides rate limiting functionality for API endpoints.
Rate limiting prevents abuse and ensures fair usage.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Different limits for write and read endpoints
- IP-based limiting
- Can be switched off with RATE_LIMIT_ENABLED
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from visit_counter.core.setting import settings

# Initialize rate limiter
# Uses IP address for rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Rate limit configurations per endpoint
# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "visits": "120/minute",  # Each call writes a ledger row
    "history": "60/minute",
    "diagnostics": "30/minute",  # db-test / redis-test
}
