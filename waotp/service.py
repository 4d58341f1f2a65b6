"""
OTP Service
===========
Orchestrates issuance (generate, store, dispatch) and single-use validation.
"""

import string
import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from waotp import metrics
from waotp.channel.base import MessagingChannel
from waotp.channel.models import SendStatus
from waotp.channel.readiness import ReadinessGate
from waotp.errors import (
    ChannelNotReady,
    DispatchFailed,
    InvalidInput,
    InvalidOrExpiredOtp,
    RecipientNotRegistered,
)
from waotp.logging import mask_phone
from waotp.otp.generator import OTPGenerator
from waotp.store.base import ExpiringRecordStore

logger = structlog.get_logger(__name__)

DEFAULT_MESSAGE_TEMPLATE = "Your OTP is: {code}"


def check_message_template(template: str) -> str:
    """
    Ensure a message template formats with only a ``{code}`` field.

    Raises:
        ValueError: malformed braces, a missing ``{code}`` or any other field
    """
    fields = {name for _, name, _, _ in string.Formatter().parse(template) if name is not None}
    if fields != {"code"}:
        raise ValueError(
            f"Message template must contain {{code}} and no other fields, got {sorted(fields)}"
        )
    return template


@dataclass
class IssueResult:
    """Outcome of a successful issuance. Never carries the code."""
    expires_in: int
    message_id: Optional[str] = None


class OTPService:
    """
    OTP lifecycle manager.

    Example:
        service = OTPService(store, gate, channel)
        await service.issue("1000000000")
        await service.validate("1000000000", "123456")
    """

    def __init__(
        self,
        store: ExpiringRecordStore,
        gate: ReadinessGate,
        channel: MessagingChannel,
        generator: Optional[OTPGenerator] = None,
        message_template: str = DEFAULT_MESSAGE_TEMPLATE,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.gate = gate
        self.channel = channel
        self.generator = generator or OTPGenerator()
        self.message_template = check_message_template(message_template)
        self._clock = clock

    async def issue(self, phone_number: Optional[str]) -> IssueResult:
        """
        Generate, persist and dispatch a new OTP.

        Raises:
            InvalidInput: phone number missing
            ChannelNotReady: channel not connected; nothing is stored
            RecipientNotRegistered: address unknown to the channel; the record
                stays stored and expires unused
            DispatchFailed: any other transport failure
        """
        if not phone_number:
            metrics.record_issue("invalid_input")
            raise InvalidInput("Phone number is required")

        log = logger.bind(phone=mask_phone(phone_number))

        if not self.gate.is_ready():
            metrics.record_issue("channel_not_ready")
            log.warning("OTP requested while channel not ready", state=self.gate.state.value)
            raise ChannelNotReady()

        record = self.generator.create_record(phone_number, now=self._clock())
        await self.store.put(record)
        log = log.bind(record_id=record.id)

        address = self.channel.format_address(phone_number)
        text = self.message_template.format(code=record.code)

        try:
            result = await self.channel.send_message(address, text)
        except Exception as e:
            metrics.record_issue("dispatch_failed")
            log.exception("OTP dispatch raised", channel=self.channel.name)
            raise DispatchFailed(detail=str(e)) from e

        if result.status is SendStatus.NOT_REGISTERED:
            metrics.record_issue("recipient_not_registered")
            log.warning("Recipient not registered", error=result.error_message)
            raise RecipientNotRegistered(detail=result.error_message)

        if not result.success:
            metrics.record_issue("dispatch_failed")
            log.error(
                "OTP dispatch failed",
                error_code=result.error_code,
                error=result.error_message,
            )
            raise DispatchFailed(detail=result.error_message)

        metrics.record_issue("sent")
        log.info("OTP sent", message_id=result.message_id, expires_in=record.ttl_seconds)
        return IssueResult(expires_in=record.ttl_seconds, message_id=result.message_id)

    async def validate(self, phone_number: Optional[str], code: Optional[str]) -> None:
        """
        Consume a matching, unexpired OTP.

        Raises:
            InvalidInput: phone number or code missing
            InvalidOrExpiredOtp: no valid record, or it was consumed concurrently
        """
        if not phone_number or not code:
            metrics.record_validation("invalid_input")
            raise InvalidInput("Phone number and OTP are required")

        log = logger.bind(phone=mask_phone(phone_number))

        record = await self.store.find_valid(phone_number, code)
        if record is None:
            metrics.record_validation("invalid_or_expired")
            log.info("OTP validation failed")
            raise InvalidOrExpiredOtp()

        if not await self.store.delete(record):
            metrics.record_validation("invalid_or_expired")
            log.info("OTP already consumed", record_id=record.id)
            raise InvalidOrExpiredOtp()

        metrics.record_validation("valid")
        log.info("OTP validated", record_id=record.id)
