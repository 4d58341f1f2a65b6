"""
OTP Models
==========
Data models for OTP generation and storage.
"""

import uuid
from dataclasses import dataclass, field


@dataclass
class OTPConfig:
    """Configuration for OTP generation. Codes are always 6 digits."""
    expiry_seconds: int = 300  # 5 minutes


@dataclass
class OTPRecord:
    """An issued OTP awaiting validation."""
    phone_number: str
    code: str
    created_at: float  # Unix timestamp
    ttl_seconds: int = 300
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_mapping(self) -> dict:
        """Flat string mapping for hash-based backends."""
        return {
            "id": self.id,
            "phone_number": self.phone_number,
            "code": self.code,
            "created_at": repr(self.created_at),
            "ttl_seconds": str(self.ttl_seconds),
        }

    @classmethod
    def from_mapping(cls, data: dict) -> "OTPRecord":
        return cls(
            id=data["id"],
            phone_number=data["phone_number"],
            code=data["code"],
            created_at=float(data["created_at"]),
            ttl_seconds=int(data["ttl_seconds"]),
        )
