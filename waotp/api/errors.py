"""
Exception Handlers
==================
Maps the OTP error taxonomy onto ``{"error": ...}`` JSON responses.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from waotp.errors import OTPServiceError, RateLimitExceeded

logger = structlog.get_logger(__name__)


async def otp_error_handler(request: Request, exc: OTPServiceError) -> JSONResponse:
    if exc.detail:
        logger.info("Request failed", code=exc.code, path=request.url.path, detail=exc.detail)

    headers = None
    if isinstance(exc, RateLimitExceeded) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Invalid request body", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OTPServiceError, otp_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
