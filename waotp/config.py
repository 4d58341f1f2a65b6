"""
Service Configuration
=====================
Environment-driven settings for the OTP service.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _env_list(name: str, default: str) -> List[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime configuration for the OTP service."""

    # Server
    service_name: str = "waotp"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    log_json: bool = True
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # OTP lifecycle
    otp_ttl_seconds: int = 300
    message_template: str = "Your OTP is: {code}"

    # Store
    store_backend: str = "memory"  # memory | redis
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "waotp"
    sweep_interval_seconds: float = 30.0
    store_connect_attempts: int = 3

    # Rate limiting (issuance path only)
    rate_limit_max_requests: int = 15
    rate_limit_window_seconds: int = 15 * 60
    trust_forwarded_for: bool = False

    # Messaging channel
    channel_backend: str = "whatsapp"  # whatsapp | console
    whatsapp_bridge_url: str = "http://localhost:3000"
    whatsapp_bridge_token: str = ""
    whatsapp_bridge_timeout: float = 15.0
    bridge_webhook_secret: str = ""
    country_prefix: str = "2"
    address_suffix: str = "@c.us"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``WAOTP_*`` environment variables."""
        defaults = cls()
        return cls(
            service_name=os.environ.get("WAOTP_SERVICE_NAME", defaults.service_name),
            host=os.environ.get("WAOTP_HOST", defaults.host),
            port=int(os.environ.get("PORT", os.environ.get("WAOTP_PORT", defaults.port))),
            log_level=os.environ.get("WAOTP_LOG_LEVEL", defaults.log_level),
            log_json=_env_bool("WAOTP_LOG_JSON", defaults.log_json),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            otp_ttl_seconds=int(os.environ.get("WAOTP_OTP_TTL_SECONDS", defaults.otp_ttl_seconds)),
            message_template=os.environ.get("WAOTP_MESSAGE_TEMPLATE", defaults.message_template),
            store_backend=os.environ.get("WAOTP_STORE_BACKEND", defaults.store_backend).lower(),
            redis_url=os.environ.get("REDIS_URL", defaults.redis_url),
            redis_key_prefix=os.environ.get("WAOTP_REDIS_KEY_PREFIX", defaults.redis_key_prefix),
            sweep_interval_seconds=float(
                os.environ.get("WAOTP_SWEEP_INTERVAL_SECONDS", defaults.sweep_interval_seconds)
            ),
            store_connect_attempts=int(
                os.environ.get("WAOTP_STORE_CONNECT_ATTEMPTS", defaults.store_connect_attempts)
            ),
            rate_limit_max_requests=int(
                os.environ.get("WAOTP_RATE_LIMIT_MAX", defaults.rate_limit_max_requests)
            ),
            rate_limit_window_seconds=int(
                os.environ.get("WAOTP_RATE_LIMIT_WINDOW_SECONDS", defaults.rate_limit_window_seconds)
            ),
            trust_forwarded_for=_env_bool("WAOTP_TRUST_FORWARDED_FOR", defaults.trust_forwarded_for),
            channel_backend=os.environ.get("WAOTP_CHANNEL_BACKEND", defaults.channel_backend).lower(),
            whatsapp_bridge_url=os.environ.get("WHATSAPP_BRIDGE_URL", defaults.whatsapp_bridge_url),
            whatsapp_bridge_token=os.environ.get("WHATSAPP_BRIDGE_TOKEN", defaults.whatsapp_bridge_token),
            whatsapp_bridge_timeout=float(
                os.environ.get("WHATSAPP_BRIDGE_TIMEOUT", defaults.whatsapp_bridge_timeout)
            ),
            bridge_webhook_secret=os.environ.get("WAOTP_BRIDGE_WEBHOOK_SECRET", defaults.bridge_webhook_secret),
            country_prefix=os.environ.get("WAOTP_COUNTRY_PREFIX", defaults.country_prefix),
            address_suffix=os.environ.get("WAOTP_ADDRESS_SUFFIX", defaults.address_suffix),
        )
