"""
Messaging Channel
=================
Readiness tracking and outbound channel adapters.
"""

from waotp.config import Settings
from .models import ChannelEvent, ChannelState, SendResult, SendStatus
from .readiness import ReadinessGate
from .base import MessagingChannel
from .console import ConsoleChannel
from .whatsapp import WhatsAppBridgeChannel


def create_channel(settings: Settings) -> MessagingChannel:
    """Build the messaging channel selected by ``settings.channel_backend``."""
    if settings.channel_backend == "console":
        return ConsoleChannel(
            country_prefix=settings.country_prefix,
            address_suffix=settings.address_suffix,
        )
    if settings.channel_backend == "whatsapp":
        return WhatsAppBridgeChannel(
            base_url=settings.whatsapp_bridge_url,
            token=settings.whatsapp_bridge_token or None,
            timeout=settings.whatsapp_bridge_timeout,
            country_prefix=settings.country_prefix,
            address_suffix=settings.address_suffix,
        )
    raise ValueError(f"Unknown channel backend: {settings.channel_backend}")


__all__ = [
    "ChannelEvent",
    "ChannelState",
    "SendResult",
    "SendStatus",
    "ReadinessGate",
    "MessagingChannel",
    "ConsoleChannel",
    "WhatsAppBridgeChannel",
    "create_channel",
]
