"""
Rate Limiting Configuration

This module provides rate limiting functionality for the link API.
Rate limiting prevents abuse and ensures fair usage.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Different limits for different endpoints
- IP-based limiting (can be extended to user-based)
- The redirect path is served by middleware and is not limited here
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.setting import settings

# Initialize rate limiter
# Uses IP address for rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Rate limit configurations per endpoint
# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "create": "10/minute",  # Link creation: 10 per minute per IP
    "read": "60/minute",  # Link lookups and listing: 60 per minute per IP
    "delete": "20/minute",  # Deletions: 20 per minute per IP
}
