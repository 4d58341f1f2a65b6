"""
Structured Logging
==================
structlog + stdlib logging setup shared by the service and its entrypoint.

Usage:
    from waotp.logging import setup_logging, RequestLoggingMiddleware

    setup_logging(service_name="waotp", level="INFO")
    app.add_middleware(RequestLoggingMiddleware)
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict

import structlog

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
service_name_var: ContextVar[str] = ContextVar("service_name", default="waotp")


# =============================================================================
# Processors
# =============================================================================

def add_request_context(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach service name and current request id to every event."""
    event_dict.setdefault("service", service_name_var.get())
    request_id = request_id_var.get()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def mask_phone(phone: str) -> str:
    """Mask a phone number for logs, keeping the last 3 digits."""
    if not phone:
        return ""
    if len(phone) <= 3:
        return "*" * len(phone)
    return "*" * (len(phone) - 3) + phone[-3:]


# =============================================================================
# Setup
# =============================================================================

def setup_logging(
    service_name: str,
    level: str = "INFO",
    json_output: bool = True,
) -> logging.Logger:
    """
    Configure stdlib logging and structlog for the service.

    Args:
        service_name: Name of the service (e.g., "waotp")
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to output JSON (for production)

    Returns:
        Configured root logger
    """
    service_name_var.set(service_name)
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_request_context,
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    structlog.get_logger(__name__).info(
        "Logging configured", service=service_name, level=level.upper(), json=json_output
    )
    return root_logger


# =============================================================================
# Request Logging Middleware
# =============================================================================

class RequestLoggingMiddleware:
    """
    ASGI middleware for request/response logging.

    Assigns a request id (honouring an inbound ``X-Request-ID``) and echoes it
    back on the response.
    """

    def __init__(self, app):
        self.app = app
        self.logger = structlog.get_logger("waotp.http")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        req_id = headers.get(b"x-request-id", b"").decode("latin-1")[:64] or uuid.uuid4().hex[:12]
        token = request_id_var.set(req_id)

        method = scope.get("method", "")
        path = scope.get("path", "")
        client = scope.get("client")
        client_ip = client[0] if client else ""

        start_time = time.time()
        self.logger.info("Request", method=method, path=path, client_ip=client_ip)

        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                raw_headers = list(message.get("headers", []))
                raw_headers.append((b"x-request-id", req_id.encode("latin-1")))
                message["headers"] = raw_headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = int((time.time() - start_time) * 1000)
            log = self.logger.info
            if status_code >= 500:
                log = self.logger.error
            elif status_code >= 400:
                log = self.logger.warning
            log(
                "Response",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
            )
            request_id_var.reset(token)
