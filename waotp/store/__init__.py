"""
Expiring Record Store
=====================
OTP persistence with TTL-based expiry.
"""

from typing import Optional

from redis.asyncio import Redis

from waotp.config import Settings
from .base import ExpiringRecordStore
from .in_memory import InMemoryRecordStore
from .redis_store import RedisRecordStore
from .sweeper import ExpirySweeper
from .probe import probe_store


def create_record_store(settings: Settings, redis_client: Optional[Redis] = None) -> ExpiringRecordStore:
    """
    Build the record store selected by ``settings.store_backend``.

    Args:
        settings: Service settings
        redis_client: Existing Redis client (created from ``redis_url`` if omitted)
    """
    if settings.store_backend == "memory":
        return InMemoryRecordStore()
    if settings.store_backend == "redis":
        client = redis_client or Redis.from_url(settings.redis_url, decode_responses=True)
        return RedisRecordStore(client, key_prefix=settings.redis_key_prefix)
    raise ValueError(f"Unknown store backend: {settings.store_backend}")


__all__ = [
    "ExpiringRecordStore",
    "InMemoryRecordStore",
    "RedisRecordStore",
    "ExpirySweeper",
    "probe_store",
    "create_record_store",
]
