"""
Messaging Channel Adapter
=========================
Base class for outbound messaging collaborators.
"""

from abc import ABC, abstractmethod

import structlog

from .models import SendResult
from .readiness import ReadinessGate

logger = structlog.get_logger(__name__)


class MessagingChannel(ABC):
    """
    Abstract base class for messaging channels.

    Implementations report lifecycle changes to the ``ReadinessGate`` and
    return a ``SendResult`` instead of raising on delivery failures.
    """

    name: str = "base"

    def __init__(self, country_prefix: str = "2", address_suffix: str = "@c.us"):
        self.country_prefix = country_prefix
        self.address_suffix = address_suffix
        self._is_initialized = False

    def format_address(self, phone_number: str) -> str:
        """Turn a caller-supplied phone number into a channel address."""
        return f"{self.country_prefix}{phone_number}{self.address_suffix}"

    async def initialize(self, gate: ReadinessGate) -> None:
        """Open resources and seed the gate with the channel's current state."""
        self._is_initialized = True
        logger.info("Messaging channel initialized", channel=self.name)

    async def close(self) -> None:
        self._is_initialized = False
        logger.info("Messaging channel closed", channel=self.name)

    @abstractmethod
    async def send_message(self, address: str, text: str) -> SendResult:
        """
        Send a text message.

        Args:
            address: Channel address from ``format_address``
            text: Message body

        Returns:
            SendResult describing the outcome
        """
