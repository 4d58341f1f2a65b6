"""
Startup Probe
=============
Bounded connectivity check for the record store at startup.
"""

import structlog
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from .base import ExpiringRecordStore

logger = structlog.get_logger(__name__)


async def probe_store(store: ExpiringRecordStore, attempts: int = 3, max_wait: float = 5.0) -> bool:
    """
    Ping the store, retrying with exponential backoff.

    An unreachable store is logged and reported, never raised: the service
    keeps running and store operations fail per request.

    Returns:
        True if the store answered
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=0.5, max=max_wait),
    )

    try:
        async for attempt in retrying:
            with attempt:
                if not await store.ping():
                    raise ConnectionError("store ping returned false")
    except RetryError as e:
        logger.error(
            "Record store unreachable at startup; continuing",
            store=store.name,
            attempts=attempts,
            error=str(e.last_attempt.exception()),
        )
        return False

    logger.info("Record store connected", store=store.name)
    return True
