"""
Rate Limit Dependency
=====================
FastAPI dependency that throttles a route per client IP.
"""

import inspect
from typing import Union

import structlog
from fastapi import Request, Response

from waotp.errors import RateLimitExceeded
from waotp import metrics
from .in_memory import InMemoryRateLimiter
from .models import RateLimitInfo
from .redis_limiter import RedisRateLimiter

logger = structlog.get_logger(__name__)

Limiter = Union[InMemoryRateLimiter, RedisRateLimiter]


def get_client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """Client IP, taken from the first X-Forwarded-For hop when trusted."""
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit_dependency(limiter: Limiter, prefix: str, trust_forwarded_for: bool = False):
    """
    Build a dependency enforcing ``limiter`` on a route.

    Raises:
        RateLimitExceeded: when the client's quota is exhausted
    """

    async def enforce_rate_limit(request: Request, response: Response) -> RateLimitInfo:
        client_ip = get_client_ip(request, trust_forwarded_for)
        info = limiter.check(limiter.get_key_pattern(prefix, client_ip))
        if inspect.isawaitable(info):
            info = await info

        if not info.allowed:
            metrics.record_rate_limited()
            logger.warning(
                "Rate limit exceeded",
                route=prefix,
                client_ip=client_ip,
                retry_after=info.retry_after,
            )
            raise RateLimitExceeded(retry_after=info.retry_after)

        response.headers.update(info.headers())
        return info

    return enforce_rate_limit
