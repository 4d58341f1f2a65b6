"""
Expiry Sweeper
==============
Background task that physically purges expired OTP records.
"""

import asyncio
from typing import Optional

import structlog

from .base import ExpiringRecordStore

logger = structlog.get_logger(__name__)


class ExpirySweeper:
    """
    Periodically calls ``store.purge_expired()``.

    Purging only reclaims storage; expired records are already invisible to
    ``find_valid``.
    """

    def __init__(self, store: ExpiringRecordStore, interval: float = 30.0):
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="waotp-expiry-sweeper")
        logger.info("Expiry sweeper started", store=self.store.name, interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")

    async def sweep_once(self) -> int:
        try:
            return await self.store.purge_expired()
        except Exception as e:
            logger.error("Expiry sweep failed", store=self.store.name, error=str(e))
            return 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.sweep_once()
