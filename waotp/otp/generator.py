"""
OTP Generator
=============
Unpredictable 6-digit code generation.
"""

import secrets
import time
from typing import Optional

from .models import OTPConfig, OTPRecord

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp() -> str:
    """
    Generate a 6-digit numeric OTP.

    Uniform over [100000, 999999] from the OS CSPRNG, so there is never a
    leading zero and consecutive calls are independent.

    Returns:
        OTP string
    """
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OTPGenerator:
    """Builds OTP records with the configured lifetime."""

    def __init__(self, config: Optional[OTPConfig] = None):
        self.config = config or OTPConfig()

    def generate(self) -> str:
        return generate_otp()

    def create_record(self, phone_number: str, now: Optional[float] = None) -> OTPRecord:
        """
        Create a fresh record for a phone number.

        Args:
            phone_number: Caller-supplied phone number
            now: Creation timestamp (defaults to current time)

        Returns:
            Unsaved OTPRecord
        """
        return OTPRecord(
            phone_number=phone_number,
            code=self.generate(),
            created_at=time.time() if now is None else now,
            ttl_seconds=self.config.expiry_seconds,
        )
