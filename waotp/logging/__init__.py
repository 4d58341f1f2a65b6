"""
Structured logging for the OTP service.
"""

from .structured import (
    setup_logging,
    RequestLoggingMiddleware,
    add_request_context,
    mask_phone,
    request_id_var,
    service_name_var,
)

__all__ = [
    "setup_logging",
    "RequestLoggingMiddleware",
    "add_request_context",
    "mask_phone",
    "request_id_var",
    "service_name_var",
]
