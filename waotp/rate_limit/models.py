"""
Rate Limit Models
=================
Quota decision returned by every limiter backend.
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class RateLimitInfo:
    """Decision for one request plus the caller's remaining quota."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: int  # Unix timestamp the window closes
    retry_after: Optional[int] = None  # Only set when rejected

    def headers(self) -> Dict[str, str]:
        """``RateLimit-*`` response headers describing this decision."""
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_at),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers
