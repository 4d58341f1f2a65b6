"""
Channel Models
==============
States, lifecycle events and send results for the messaging channel.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ChannelState(str, Enum):
    """Connectivity state of the outbound messaging channel."""
    DISCONNECTED = "disconnected"  # Initial
    CONNECTING = "connecting"      # Pairing / session restore in progress
    READY = "ready"                # Dispatch permitted
    AUTH_FAILED = "auth_failed"    # Terminal until re-initialised


class ChannelEvent(str, Enum):
    """Lifecycle events emitted by the messaging collaborator."""
    QR = "qr"
    CONNECTING = "connecting"
    READY = "ready"
    AUTH_FAILURE = "auth_failure"
    DISCONNECTED = "disconnected"


class SendStatus(str, Enum):
    SENT = "sent"
    NOT_REGISTERED = "not_registered"
    FAILED = "failed"


@dataclass
class SendResult:
    """Result of a message send operation."""
    status: SendStatus
    message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    raw_response: Optional[Dict[str, Any]] = None

    @property
    def success(self) -> bool:
        return self.status == SendStatus.SENT
