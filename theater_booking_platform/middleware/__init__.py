"""Middleware components for the Theater booking platform."""

from .error_handler import ErrorHandlerMiddleware, register_exception_handlers
from .rate_limiter import RateLimiterMiddleware
from .logging import LoggingMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
    "register_exception_handlers",
    "RateLimiterMiddleware",
    "LoggingMiddleware"
]
