"""
Health and Metrics Endpoints
============================
Component health for the record store and messaging channel, plus
Prometheus exposition.
"""

import time
from typing import Dict

import structlog
from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from waotp import metrics
from waotp.channel.readiness import ReadinessGate
from waotp.store.base import ExpiringRecordStore
from .schemas import ComponentHealth, HealthResponse

logger = structlog.get_logger(__name__)

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"


async def check_store(store: ExpiringRecordStore) -> ComponentHealth:
    """Check record store connectivity and latency."""
    try:
        start = time.time()
        reachable = await store.ping()
        latency = (time.time() - start) * 1000
        if not reachable:
            return ComponentHealth(status="error", error="ping failed")
        return ComponentHealth(status="connected", latency_ms=round(latency, 2))
    except Exception as e:
        logger.error("Record store health check failed", store=store.name, error=str(e))
        return ComponentHealth(status="error", error="unreachable")


def check_channel(gate: ReadinessGate) -> ComponentHealth:
    if gate.is_ready():
        return ComponentHealth(status="ready")
    return ComponentHealth(status=gate.state.value, error=gate.last_reason)


def create_health_router(
    service_name: str,
    version: str,
    store: ExpiringRecordStore,
    gate: ReadinessGate,
) -> APIRouter:
    """
    Create a health check router.

    Returns:
        Router with /health, /health/live, /health/ready and /metrics
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Component health. A channel that is not ready degrades the service."""
        components: Dict[str, ComponentHealth] = {
            "store": await check_store(store),
            "channel": check_channel(gate),
        }

        overall_status = HEALTHY
        if components["store"].status == "error":
            overall_status = UNHEALTHY
        elif not gate.is_ready():
            overall_status = DEGRADED

        return HealthResponse(
            status=overall_status,
            service=service_name,
            version=version,
            components=components,
            timestamp=time.time(),
        )

    @router.get("/health/live")
    async def liveness_probe():
        """Liveness probe - always returns 200 if the process is running."""
        return {"status": "alive"}

    @router.get("/health/ready")
    async def readiness_probe():
        """Readiness probe - store reachable and channel ready."""
        store_health = await check_store(store)
        if store_health.status == "error":
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "reason": "store_unavailable"},
            )
        if not gate.is_ready():
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "reason": "channel_not_ready"},
            )
        return {"status": "ready"}

    @router.get("/metrics", include_in_schema=False)
    async def prometheus_metrics() -> Response:
        return Response(content=metrics.get_metrics_text(), media_type=metrics.CONTENT_TYPE_LATEST)

    return router
