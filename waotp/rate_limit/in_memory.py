"""
In-Memory Rate Limiter
======================
Per-key fixed window limiter for single-instance deployments and tests.
"""

import math
import time
from typing import Callable, Dict

from .models import RateLimitInfo


class InMemoryRateLimiter:
    """
    Fixed window limiter whose window opens at a key's first request.

    Rejected requests are not counted.
    """

    def __init__(
        self,
        rate: int = 15,
        window: int = 900,
        clock: Callable[[], float] = time.time,
        max_keys: int = 10000,
    ):
        """
        Args:
            rate: Number of requests allowed per window
            window: Window size in seconds
            clock: Time source
            max_keys: Bucket count above which stale buckets are pruned
        """
        self.rate = rate
        self.window = window
        self.max_keys = max_keys
        self._clock = clock
        self._buckets: Dict[str, Dict[str, float]] = {}

    def check(self, key: str) -> RateLimitInfo:
        """
        Check if request is allowed and count it if so.

        Args:
            key: Unique identifier (e.g., client IP)

        Returns:
            RateLimitInfo with decision and quota
        """
        now = self._clock()

        if len(self._buckets) > self.max_keys:
            self.prune(now)

        bucket = self._buckets.get(key)
        if bucket is None or now >= bucket["reset_at"]:
            bucket = {"reset_at": now + self.window, "count": 0}
            self._buckets[key] = bucket

        reset_at = int(math.ceil(bucket["reset_at"]))

        if bucket["count"] >= self.rate:
            return RateLimitInfo(
                allowed=False,
                remaining=0,
                limit=self.rate,
                reset_at=reset_at,
                retry_after=max(1, int(math.ceil(bucket["reset_at"] - now))),
            )

        bucket["count"] += 1
        return RateLimitInfo(
            allowed=True,
            remaining=self.rate - int(bucket["count"]),
            limit=self.rate,
            reset_at=reset_at,
        )

    def prune(self, now: float) -> int:
        """Drop buckets whose window has closed."""
        stale = [key for key, bucket in self._buckets.items() if now >= bucket["reset_at"]]
        for key in stale:
            del self._buckets[key]
        return len(stale)

    def reset(self, key: str) -> None:
        self._buckets.pop(key, None)

    def get_key_pattern(self, prefix: str, identifier: str) -> str:
        """Generate a rate limit key."""
        return f"ratelimit:{prefix}:{identifier}"
