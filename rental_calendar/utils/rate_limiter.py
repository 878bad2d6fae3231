"""
Rate limiting (slowapi).

Counters live in Redis when REDIS_URL is set so limits hold across
workers; otherwise they are per process.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = "100/minute"

RATE_LIMITS = {
    "search": settings.search_rate_limit,
    "calendar_read": "120/minute",
    "calendar_write": "30/minute",
}


def get_real_client_ip(request: Request) -> str:
    """Client address, honouring X-Forwarded-For / X-Real-IP from the proxy."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return get_remote_address(request)


def create_limiter() -> Limiter:
    options = {
        "key_func": get_real_client_ip,
        "default_limits": [DEFAULT_LIMIT],
        "enabled": settings.rate_limit_enabled,
    }
    if settings.redis_url:
        logger.info("Rate limiter using Redis storage")
        options["storage_uri"] = settings.redis_url
    return Limiter(**options)


limiter = create_limiter()


def get_rate_limit(operation: str) -> str:
    return RATE_LIMITS.get(operation, DEFAULT_LIMIT)
