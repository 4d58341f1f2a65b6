"""
Expiring Record Store Contract
==============================
Abstract store for OTP records with TTL-based expiry.
"""

from abc import ABC, abstractmethod
from typing import Optional

from waotp.otp.models import OTPRecord


class ExpiringRecordStore(ABC):
    """
    Abstract base class for OTP record stores.

    Guarantees, independent of when expired records are physically purged:
    - ``find_valid`` never returns a record at or after its ``expires_at``.
    - ``put`` is additive; records for the same phone number never merge.
    - ``delete`` is idempotent.
    """

    name: str = "base"

    @abstractmethod
    async def put(self, record: OTPRecord) -> None:
        """Insert a new record."""

    @abstractmethod
    async def find_valid(self, phone_number: str, code: str) -> Optional[OTPRecord]:
        """Return an unexpired record matching both fields exactly, or None."""

    @abstractmethod
    async def delete(self, record: OTPRecord) -> bool:
        """
        Remove a record by identity.

        Returns:
            True if this call removed the record, False if it was already gone
        """

    async def purge_expired(self) -> int:
        """Physically remove expired records. Returns the number removed."""
        return 0

    async def ping(self) -> bool:
        """Check that the backing store is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
