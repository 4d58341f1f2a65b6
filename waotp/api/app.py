"""
Application Factory
===================
Wires the store, readiness gate, channel, limiter and service into FastAPI.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from redis.asyncio import Redis

from waotp import __version__, metrics
from waotp.channel import MessagingChannel, ReadinessGate, create_channel
from waotp.config import Settings
from waotp.logging import RequestLoggingMiddleware
from waotp.otp import OTPConfig, OTPGenerator
from waotp.rate_limit import Limiter, create_rate_limiter
from waotp.service import OTPService
from waotp.store import ExpiringRecordStore, ExpirySweeper, create_record_store, probe_store
from .errors import register_exception_handlers
from .health import create_health_router
from .middleware import ErrorHandlerMiddleware, setup_cors
from .routes import create_channel_router, create_otp_router

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ExpiringRecordStore] = None,
    channel: Optional[MessagingChannel] = None,
    gate: Optional[ReadinessGate] = None,
    rate_limiter: Optional[Limiter] = None,
    redis_client: Optional[Redis] = None,
) -> FastAPI:
    """
    Build the OTP service application.

    Collaborators not passed in are built from ``settings``. A Redis client
    is created only for the redis store backend and is shared with the rate
    limiter.
    """
    settings = settings or Settings.from_env()

    if redis_client is None and store is None and settings.store_backend == "redis":
        redis_client = Redis.from_url(settings.redis_url, decode_responses=True)

    store = store or create_record_store(settings, redis_client)
    gate = gate or ReadinessGate()
    channel = channel or create_channel(settings)
    rate_limiter = rate_limiter or create_rate_limiter(settings, redis_client)

    gate.add_listener(metrics.record_channel_state)
    metrics.record_channel_state(gate.state)

    generator = OTPGenerator(OTPConfig(expiry_seconds=settings.otp_ttl_seconds))
    service = OTPService(
        store=store,
        gate=gate,
        channel=channel,
        generator=generator,
        message_template=settings.message_template,
    )
    sweeper = ExpirySweeper(store, interval=settings.sweep_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "OTP service starting",
            host=settings.host,
            port=settings.port,
            store=store.name,
            channel=channel.name,
        )
        await probe_store(store, attempts=settings.store_connect_attempts)
        await channel.initialize(gate)
        sweeper.start()
        yield
        await sweeper.stop()
        await channel.close()
        await store.close()
        logger.info("OTP service shut down")

    app = FastAPI(
        title="WhatsApp OTP Service",
        version=__version__,
        description="Issues and validates one-time passcodes delivered over WhatsApp",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.gate = gate
    app.state.channel = channel
    app.state.rate_limiter = rate_limiter
    app.state.otp_service = service
    app.state.sweeper = sweeper

    # Middleware (last added = outermost)
    setup_cors(app, origins=settings.cors_origins)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(create_health_router(settings.service_name, __version__, store, gate))
    app.include_router(create_otp_router(rate_limiter, settings.trust_forwarded_for))
    app.include_router(create_channel_router())

    return app
