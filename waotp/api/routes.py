"""
OTP and Channel Routes
======================
Public OTP endpoints and the bridge-facing channel lifecycle endpoints.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException

from waotp.channel.models import ChannelEvent
from waotp.channel.readiness import ReadinessGate
from waotp.config import Settings
from waotp.rate_limit import Limiter, rate_limit_dependency
from waotp.service import OTPService
from .dependencies import get_gate, get_otp_service, get_settings, require_bridge_secret
from .schemas import (
    ChannelEventRequest,
    ChannelEventResponse,
    ChannelStatusResponse,
    ErrorResponse,
    PairingCodeResponse,
    SendOtpRequest,
    SuccessResponse,
    ValidateOtpRequest,
)

logger = structlog.get_logger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def create_otp_router(rate_limiter: Limiter, trust_forwarded_for: bool = False) -> APIRouter:
    """
    Create the OTP router.

    Only ``/send-otp`` is rate limited; validation is not.
    """
    router = APIRouter(tags=["OTP"])
    enforce_rate_limit = rate_limit_dependency(rate_limiter, "send-otp", trust_forwarded_for)

    @router.post(
        "/send-otp",
        response_model=SuccessResponse,
        responses=ERROR_RESPONSES,
        dependencies=[Depends(enforce_rate_limit)],
    )
    async def send_otp(
        body: Optional[SendOtpRequest] = None,
        service: OTPService = Depends(get_otp_service),
    ) -> SuccessResponse:
        """Generate an OTP and send it over WhatsApp."""
        phone_number = body.phoneNumber if body else None
        await service.issue(phone_number)
        return SuccessResponse(message="OTP sent successfully")

    @router.post("/validate-otp", response_model=SuccessResponse, responses=ERROR_RESPONSES)
    async def validate_otp(
        body: Optional[ValidateOtpRequest] = None,
        service: OTPService = Depends(get_otp_service),
    ) -> SuccessResponse:
        """Consume a previously issued OTP."""
        phone_number = body.phoneNumber if body else None
        code = body.otp if body else None
        await service.validate(phone_number, code)
        return SuccessResponse(message="OTP is valid")

    return router


def create_channel_router() -> APIRouter:
    router = APIRouter(prefix="/channel", tags=["Channel"])

    @router.post(
        "/events",
        response_model=ChannelEventResponse,
        dependencies=[Depends(require_bridge_secret)],
    )
    async def channel_event(
        body: ChannelEventRequest,
        gate: ReadinessGate = Depends(get_gate),
    ) -> ChannelEventResponse:
        """Lifecycle webhook called by the WhatsApp bridge."""
        try:
            event = ChannelEvent(body.event.lower())
        except ValueError:
            raise HTTPException(status_code=400, detail="Unknown channel event")

        logger.info("Channel event received", channel_event=event.value)
        changed = gate.handle(event, body.detail)
        return ChannelEventResponse(state=gate.state.value, changed=changed)

    @router.get("/status", response_model=ChannelStatusResponse)
    async def channel_status(gate: ReadinessGate = Depends(get_gate)) -> ChannelStatusResponse:
        return ChannelStatusResponse(**gate.snapshot())

    @router.get(
        "/qr",
        response_model=PairingCodeResponse,
        dependencies=[Depends(require_bridge_secret)],
    )
    async def pairing_code(
        gate: ReadinessGate = Depends(get_gate),
        settings: Settings = Depends(get_settings),
    ) -> PairingCodeResponse:
        """Latest pairing payload, only exposed when a bridge secret guards it."""
        if not settings.bridge_webhook_secret or not gate.pairing_code:
            raise HTTPException(status_code=404, detail="No pairing code available")
        return PairingCodeResponse(qr=gate.pairing_code)

    return router
