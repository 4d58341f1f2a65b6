"""
Prometheus Metrics
==================
OTP lifecycle counters on a dedicated registry.
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

from waotp.channel.models import ChannelState

OTP_REGISTRY = CollectorRegistry()

OTP_ISSUED_TOTAL = Counter(
    name="waotp_otp_issued_total",
    documentation="OTP issuance attempts by outcome",
    labelnames=["outcome"],
    registry=OTP_REGISTRY,
)

OTP_VALIDATED_TOTAL = Counter(
    name="waotp_otp_validated_total",
    documentation="OTP validation attempts by outcome",
    labelnames=["outcome"],
    registry=OTP_REGISTRY,
)

RATE_LIMITED_TOTAL = Counter(
    name="waotp_rate_limited_total",
    documentation="Issuance requests rejected by the rate limiter",
    registry=OTP_REGISTRY,
)

CHANNEL_READY = Gauge(
    name="waotp_channel_ready",
    documentation="1 when the messaging channel accepts dispatch, else 0",
    registry=OTP_REGISTRY,
)


def record_issue(outcome: str) -> None:
    OTP_ISSUED_TOTAL.labels(outcome=outcome).inc()


def record_validation(outcome: str) -> None:
    OTP_VALIDATED_TOTAL.labels(outcome=outcome).inc()


def record_rate_limited() -> None:
    RATE_LIMITED_TOTAL.inc()


def record_channel_state(state: ChannelState) -> None:
    """ReadinessGate listener keeping the readiness gauge current."""
    CHANNEL_READY.set(1 if state is ChannelState.READY else 0)


def get_metrics_text() -> bytes:
    """Get metrics in Prometheus text format."""
    return generate_latest(OTP_REGISTRY)


__all__ = [
    "OTP_REGISTRY",
    "CONTENT_TYPE_LATEST",
    "record_issue",
    "record_validation",
    "record_rate_limited",
    "record_channel_state",
    "get_metrics_text",
]
