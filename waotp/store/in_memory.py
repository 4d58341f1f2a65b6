"""
In-Memory Record Store
======================
Process-local OTP store for development, tests and single-instance deployments.
"""

import asyncio
import time
from typing import Callable, Dict, Optional, Set, Tuple

import structlog

from waotp.otp.models import OTPRecord
from .base import ExpiringRecordStore

logger = structlog.get_logger(__name__)


class InMemoryRecordStore(ExpiringRecordStore):
    """
    Dict-backed record store.

    Expiry is checked lazily on every lookup; ``purge_expired`` reclaims
    memory and is driven by ``ExpirySweeper``.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._records: Dict[str, OTPRecord] = {}
        self._index: Dict[Tuple[str, str], Set[str]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def put(self, record: OTPRecord) -> None:
        async with self._lock:
            self._records[record.id] = record
            self._index.setdefault((record.phone_number, record.code), set()).add(record.id)

    async def find_valid(self, phone_number: str, code: str) -> Optional[OTPRecord]:
        now = self._clock()
        async with self._lock:
            for record_id in self._index.get((phone_number, code), ()):
                record = self._records.get(record_id)
                if record is not None and not record.is_expired(now):
                    return record
        return None

    async def delete(self, record: OTPRecord) -> bool:
        async with self._lock:
            return self._remove(record.id)

    async def purge_expired(self) -> int:
        now = self._clock()
        async with self._lock:
            expired = [rid for rid, rec in self._records.items() if rec.is_expired(now)]
            for record_id in expired:
                self._remove(record_id)

        if expired:
            logger.debug("Purged expired OTP records", count=len(expired))
        return len(expired)

    def _remove(self, record_id: str) -> bool:
        # Caller must hold the lock
        record = self._records.pop(record_id, None)
        if record is None:
            return False

        key = (record.phone_number, record.code)
        ids = self._index.get(key)
        if ids is not None:
            ids.discard(record_id)
            if not ids:
                del self._index[key]
        return True
