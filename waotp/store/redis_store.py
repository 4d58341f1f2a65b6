"""
Redis Record Store
==================
Redis-backed OTP store using native key expiry.

Layout:
    {prefix}:record:{id}             hash, EXPIRE ttl
    {prefix}:index:{phone}:{code}    set of record ids, EXPIRE ttl
"""

import time
from typing import Callable, Optional

import structlog
from redis.asyncio import Redis

from waotp.otp.models import OTPRecord
from .base import ExpiringRecordStore

logger = structlog.get_logger(__name__)


def _decode(value) -> str:
    return value.decode() if isinstance(value, bytes) else value


class RedisRecordStore(ExpiringRecordStore):
    """
    Redis-backed record store.

    Redis evicts records on its own schedule; ``find_valid`` re-checks
    ``created_at + ttl`` so a record is invalid from the exact expiry instant.
    """

    name = "redis"

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "waotp",
        clock: Callable[[], float] = time.time,
    ):
        self.redis = redis
        self.key_prefix = key_prefix
        self._clock = clock

    def _record_key(self, record_id: str) -> str:
        return f"{self.key_prefix}:record:{record_id}"

    def _index_key(self, phone_number: str, code: str) -> str:
        return f"{self.key_prefix}:index:{phone_number}:{code}"

    async def put(self, record: OTPRecord) -> None:
        record_key = self._record_key(record.id)
        index_key = self._index_key(record.phone_number, record.code)

        # MULTI/EXEC: neither key exists without its TTL
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(record_key, mapping=record.to_mapping())
            pipe.expire(record_key, record.ttl_seconds)
            pipe.sadd(index_key, record.id)
            pipe.expire(index_key, record.ttl_seconds)
            await pipe.execute()

    async def find_valid(self, phone_number: str, code: str) -> Optional[OTPRecord]:
        index_key = self._index_key(phone_number, code)
        record_ids = await self.redis.smembers(index_key)
        now = self._clock()

        for raw_id in record_ids:
            record_id = _decode(raw_id)
            data = await self.redis.hgetall(self._record_key(record_id))
            if not data:
                # Evicted by Redis; drop the dangling index entry
                await self.redis.srem(index_key, record_id)
                continue

            record = OTPRecord.from_mapping({_decode(k): _decode(v) for k, v in data.items()})
            if record.phone_number != phone_number or record.code != code:
                continue
            if record.is_expired(now):
                continue
            return record

        return None

    async def delete(self, record: OTPRecord) -> bool:
        removed = await self.redis.delete(self._record_key(record.id))
        await self.redis.srem(self._index_key(record.phone_number, record.code), record.id)
        return bool(removed)

    async def ping(self) -> bool:
        return bool(await self.redis.ping())

    async def close(self) -> None:
        await self.redis.aclose()
        logger.info("Redis record store closed")
