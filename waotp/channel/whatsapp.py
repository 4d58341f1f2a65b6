"""
WhatsApp Bridge Channel
=======================
Sends messages through an HTTP bridge that owns the WhatsApp Web session.

The bridge reports lifecycle events to ``POST /channel/events`` on this
service; on startup the current state is read from ``GET /api/status``.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from .base import MessagingChannel
from .models import ChannelEvent, SendResult, SendStatus
from .readiness import ReadinessGate

logger = structlog.get_logger(__name__)

NOT_REGISTERED_MARKER = "not registered"


class WhatsAppBridgeChannel(MessagingChannel):
    """
    WhatsApp channel backed by a bridge HTTP API.

    Endpoints used:
        POST {base_url}/api/sendText   {"chatId": ..., "text": ...}
        GET  {base_url}/api/status     {"status": "ready" | "connecting" | ...}
    """

    name = "whatsapp"

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        country_prefix: str = "2",
        address_suffix: str = "@c.us",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(country_prefix=country_prefix, address_suffix=address_suffix)
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self, gate: ReadinessGate) -> None:
        """Create the HTTP client and sync the gate with the bridge state."""
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize(gate)
        await self.refresh_state(gate)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    async def refresh_state(self, gate: ReadinessGate) -> None:
        """Read the bridge's session state and feed it to the gate as an event."""
        if not self._client:
            raise RuntimeError("Channel not initialized")

        try:
            response = await self._client.get("/api/status")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("WhatsApp bridge status unavailable", error=str(e))
            return

        data = self._parse_body(response)
        if not data:
            logger.warning("Unreadable WhatsApp bridge status", body=response.text[:200])
            return

        raw_status = str(data.get("status", "")).lower()
        try:
            event = ChannelEvent(raw_status)
        except ValueError:
            logger.warning("Unknown WhatsApp bridge status", status=raw_status)
            return
        gate.handle(event, data.get("detail"))

    async def send_message(self, address: str, text: str) -> SendResult:
        if not self._client:
            raise RuntimeError("Channel not initialized")

        try:
            response = await self._client.post(
                "/api/sendText",
                json={"chatId": address, "text": text},
            )
        except httpx.TimeoutException as e:
            logger.error("WhatsApp send timed out", error=str(e))
            return SendResult(status=SendStatus.FAILED, error_code="timeout", error_message=str(e))
        except httpx.HTTPError as e:
            logger.error("WhatsApp send failed", error=str(e))
            return SendResult(status=SendStatus.FAILED, error_code="transport", error_message=str(e))

        data = self._parse_body(response)

        if response.is_success:
            return SendResult(
                status=SendStatus.SENT,
                message_id=data.get("id"),
                raw_response=data,
            )

        error_message = str(data.get("error") or data.get("message") or response.text or "Unknown error")
        if response.status_code == 404 or NOT_REGISTERED_MARKER in error_message.lower():
            status = SendStatus.NOT_REGISTERED
        else:
            status = SendStatus.FAILED

        return SendResult(
            status=status,
            error_code=str(response.status_code),
            error_message=error_message,
            raw_response=data,
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
