"""
Rate Limiting
=============
Per-source issuance throttling with in-memory and Redis backends.
"""

from typing import Optional

from redis.asyncio import Redis

from waotp.config import Settings
from .models import RateLimitInfo
from .in_memory import InMemoryRateLimiter
from .redis_limiter import RedisRateLimiter, FIXED_WINDOW_SCRIPT
from .dependency import Limiter, get_client_ip, rate_limit_dependency


def create_rate_limiter(settings: Settings, redis_client: Optional[Redis] = None) -> Limiter:
    """Redis-backed when a Redis client is available, otherwise in-memory."""
    if redis_client is not None:
        return RedisRateLimiter(
            redis_client,
            rate=settings.rate_limit_max_requests,
            window=settings.rate_limit_window_seconds,
        )
    return InMemoryRateLimiter(
        rate=settings.rate_limit_max_requests,
        window=settings.rate_limit_window_seconds,
    )


__all__ = [
    # Models
    "RateLimitInfo",
    # Limiters
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    "Limiter",
    "create_rate_limiter",
    # FastAPI
    "get_client_ip",
    "rate_limit_dependency",
    # Scripts
    "FIXED_WINDOW_SCRIPT",
]
