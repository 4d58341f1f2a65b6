"""
Redis Rate Limiter
==================
Redis-backed fixed window limiter using a Lua script for atomic operations.
"""

import time
from typing import Optional

import structlog
from redis.exceptions import NoScriptError

from .models import RateLimitInfo

logger = structlog.get_logger(__name__)

# Lua script for an atomic fixed window that opens at the key's first request.
# Rejected requests do not increment the counter.
FIXED_WINDOW_SCRIPT = """
local key = KEYS[1]
local rate = tonumber(ARGV[1])
local window = tonumber(ARGV[2])

local count = tonumber(redis.call('GET', key) or '0')

if count >= rate then
    local ttl = redis.call('TTL', key)
    if ttl < 0 then
        ttl = window
    end
    return {0, 0, rate, ttl}
end

count = redis.call('INCR', key)
if count == 1 then
    redis.call('EXPIRE', key, window)
end

local ttl = redis.call('TTL', key)
if ttl < 0 then
    ttl = window
end

return {1, rate - count, rate, ttl}
"""


class RedisRateLimiter:
    """
    Redis-backed fixed window rate limiter.

    Shared across service instances. Uses Lua scripts for atomic operations.
    """

    def __init__(self, redis_client, rate: int = 15, window: int = 900):
        """
        Args:
            redis_client: Async Redis client
            rate: Requests per window
            window: Window size in seconds
        """
        self.redis = redis_client
        self.rate = rate
        self.window = window
        self._script_sha: Optional[str] = None

    async def _ensure_script(self) -> str:
        """Load Lua script into Redis if needed."""
        if self._script_sha is None:
            self._script_sha = await self.redis.script_load(FIXED_WINDOW_SCRIPT)
        return self._script_sha

    async def _evaluate(self, key: str):
        script_sha = await self._ensure_script()
        try:
            return await self.redis.evalsha(script_sha, 1, key, self.rate, self.window)
        except NoScriptError:
            # Script cache flushed (restart or SCRIPT FLUSH); reload once
            logger.warning("Rate limit script missing from Redis, reloading")
            self._script_sha = None
            script_sha = await self._ensure_script()
            return await self.redis.evalsha(script_sha, 1, key, self.rate, self.window)

    async def check(self, key: str) -> RateLimitInfo:
        """
        Check if request is allowed using Redis.

        Args:
            key: Rate limit key

        Returns:
            RateLimitInfo with decision
        """
        now = int(time.time())

        try:
            result = await self._evaluate(key)
        except Exception as e:
            logger.error("Rate limit check failed", error=str(e))
            # Fail open in case of Redis issues
            return RateLimitInfo(
                allowed=True,
                remaining=self.rate,
                limit=self.rate,
                reset_at=now + self.window,
            )

        allowed, remaining, limit, ttl = (int(v) for v in result)
        return RateLimitInfo(
            allowed=bool(allowed),
            remaining=remaining,
            limit=limit,
            reset_at=now + ttl,
            retry_after=None if allowed else max(1, ttl),
        )

    def get_key_pattern(self, prefix: str, identifier: str) -> str:
        """Generate a rate limit key."""
        return f"ratelimit:{prefix}:{identifier}"
