"""
OTP Generation
==============
Code generation and record models.
"""

from .models import OTPConfig, OTPRecord
from .generator import OTPGenerator, generate_otp, OTP_MIN, OTP_MAX

__all__ = [
    "OTPConfig",
    "OTPRecord",
    "OTPGenerator",
    "generate_otp",
    "OTP_MIN",
    "OTP_MAX",
]
