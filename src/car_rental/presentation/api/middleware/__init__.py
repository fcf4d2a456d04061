"""Middleware module for the car rental API."""

from .logging import RequestResponseLoggingMiddleware

__all__ = [
    "RequestResponseLoggingMiddleware"
]
