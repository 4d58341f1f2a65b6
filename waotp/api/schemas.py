"""
API Schemas
===========
Request and response bodies. Field names follow the public JSON contract.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class SendOtpRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    phoneNumber: Optional[str] = None


class ValidateOtpRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    phoneNumber: Optional[str] = None
    otp: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class ChannelEventRequest(BaseModel):
    event: str
    detail: Optional[str] = None


class ChannelEventResponse(BaseModel):
    success: bool = True
    state: str
    changed: bool


class ChannelStatusResponse(BaseModel):
    state: str
    ready: bool
    last_reason: Optional[str] = None
    changed_at: float
    transitions: int
    awaiting_pairing: bool


class PairingCodeResponse(BaseModel):
    qr: str


class ComponentHealth(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    components: Dict[str, ComponentHealth]
    timestamp: float
