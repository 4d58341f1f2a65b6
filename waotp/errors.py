"""
OTP Service Errors
==================
Error taxonomy for the OTP lifecycle. Every error carries the user-facing
message and HTTP status; technical detail is logged, never returned.

CRITICAL: No error may carry the generated code.
"""

from typing import Optional


class OTPServiceError(Exception):
    """Base exception for all recoverable OTP service errors."""

    status_code: int = 500
    code: str = "OTP_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class InvalidInput(OTPServiceError):
    """A required field is missing."""
    status_code = 400
    code = "INVALID_INPUT"
    message = "Invalid input"


class ChannelNotReady(OTPServiceError):
    """The messaging channel is not connected."""
    status_code = 500
    code = "CHANNEL_NOT_READY"
    message = "WhatsApp client is not ready"


class RecipientNotRegistered(OTPServiceError):
    """The destination is not a valid address on the messaging network."""
    status_code = 400
    code = "RECIPIENT_NOT_REGISTERED"
    message = "Recipient is not registered on WhatsApp"


class DispatchFailed(OTPServiceError):
    """Transport-level failure while sending the message."""
    status_code = 500
    code = "DISPATCH_FAILED"
    message = "Failed to send OTP"


class InvalidOrExpiredOtp(OTPServiceError):
    """No valid record matches the submitted phone number and code."""
    status_code = 400
    code = "INVALID_OR_EXPIRED_OTP"
    message = "Invalid OTP or OTP expired"


class RateLimitExceeded(OTPServiceError):
    """The request source exceeded its issuance quota."""
    status_code = 429
    code = "RATE_LIMITED"
    message = "Too many OTP requests, please try again later."

    def __init__(
        self,
        message: Optional[str] = None,
        detail: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message, detail)
        self.retry_after = retry_after
