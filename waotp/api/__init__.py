"""
HTTP API
========
FastAPI application for the OTP service.
"""

from .app import create_app

__all__ = ["create_app"]
