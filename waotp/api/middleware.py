"""
HTTP Middleware
===============
CORS setup and the outermost error guard.
"""

from typing import List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a generic 500 without leaking details."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error", method=request.method, path=request.url.path)
            return JSONResponse(status_code=500, content={"error": "Internal server error"})


def setup_cors(
    app: FastAPI,
    origins: Optional[List[str]] = None,
    allow_methods: Optional[List[str]] = None,
    allow_headers: Optional[List[str]] = None,
) -> None:
    """
    Configure CORS middleware.

    Args:
        app: FastAPI application instance
        origins: Allowed origins (default: any)
        allow_methods: Allowed HTTP methods
        allow_headers: Allowed headers
    """
    origins = origins or ["*"]

    if "*" in origins:
        logger.warning("CORS wildcard in use", origins=origins)

    if allow_methods is None:
        allow_methods = ["GET", "POST", "OPTIONS"]

    if allow_headers is None:
        allow_headers = ["Content-Type", "X-Request-ID", "X-Bridge-Secret"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=allow_methods,
        allow_headers=allow_headers,
    )

    logger.info("CORS configured", origins_count=len(origins))
