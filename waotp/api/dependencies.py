import hmac

from fastapi import HTTPException, Request

from waotp.channel.readiness import ReadinessGate
from waotp.config import Settings
from waotp.service import OTPService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_otp_service(request: Request) -> OTPService:
    return request.app.state.otp_service


def get_gate(request: Request) -> ReadinessGate:
    return request.app.state.gate


def require_bridge_secret(request: Request) -> None:
    """Validate X-Bridge-Secret when a webhook secret is configured."""
    expected = request.app.state.settings.bridge_webhook_secret
    if not expected:
        return
    provided = request.headers.get("X-Bridge-Secret", "")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid bridge secret")
