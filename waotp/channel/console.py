"""
Console Channel
===============
Development channel that logs outgoing messages instead of sending them.
"""

import uuid

import structlog

from .base import MessagingChannel
from .models import SendResult, SendStatus
from .readiness import ReadinessGate

logger = structlog.get_logger(__name__)


class ConsoleChannel(MessagingChannel):
    """Logs messages to stdout. Reports ready as soon as it is initialized."""

    name = "console"

    async def initialize(self, gate: ReadinessGate) -> None:
        await super().initialize(gate)
        gate.on_connecting()
        gate.on_ready()

    async def send_message(self, address: str, text: str) -> SendResult:
        logger.warning("Console channel in use; message not delivered")
        logger.info("Outgoing message", address=address, text=text)
        return SendResult(status=SendStatus.SENT, message_id=uuid.uuid4().hex)
