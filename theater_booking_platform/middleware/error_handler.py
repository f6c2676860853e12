"""
Error handling for the Theater booking platform.

Domain errors raised by services are turned into one JSON envelope::

    {"error": {"error_code", "message", "details", "suggestions"},
     "error_id": "...", "timestamp": "..."}
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import OperationalError, TimeoutError as SQLTimeoutError

from ..utils.exceptions import (
    TheaterError,
    ErrorCode,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    AuthorizationError,
    BusinessLogicError,
    SeatConflictError,
    StorageError,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.SEAT_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_BOOKING: status.HTTP_409_CONFLICT,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.BOOKING_ALREADY_CANCELLED: status.HTTP_409_CONFLICT,
    # Check-in/out report "not found or wrong state" as one outcome
    ErrorCode.INVALID_BOOKING_STATE: status.HTTP_404_NOT_FOUND,
    ErrorCode.SHOW_HAS_BOOKINGS: status.HTTP_409_CONFLICT,
    ErrorCode.RATE_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.STORAGE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_status_code_for_error(exc: TheaterError) -> int:
    """Map error codes to HTTP status codes."""
    return STATUS_MAP.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def theater_error_response(exc: TheaterError, error_id: str) -> JSONResponse:
    """Render a platform error as the JSON error envelope."""
    response_data: Dict[str, Any] = {
        "error": exc.to_dict(),
        "error_id": error_id,
        "timestamp": _timestamp()
    }
    if isinstance(exc, SeatConflictError):
        response_data["conflictingSeats"] = exc.conflicting_seats

    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=get_status_code_for_error(exc),
        content=response_data,
        headers=headers
    )


def log_theater_error(request: Request, exc: TheaterError, error_id: str) -> None:
    """Log a platform error at a level matching its severity."""
    extra = {
        "error_id": error_id,
        "error_code": exc.error_code.value,
        "method": request.method,
        "path": request.url.path,
        "details": exc.details,
    }

    if isinstance(exc, (ValidationError, NotFoundError, BusinessLogicError)):
        # Expected outcomes of visitor input, never incidents
        logger.info(f"Request rejected [{error_id}]: {exc.message}", extra=extra)
    elif isinstance(exc, (AuthenticationError, AuthorizationError)):
        logger.warning(f"Access denied [{error_id}]: {exc.message}", extra=extra)
    elif isinstance(exc, StorageError):
        logger.error(f"Storage error [{error_id}]: {exc.message}", extra=extra)
    else:
        logger.error(f"System error [{error_id}]: {exc.message}", extra=extra)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch-all for exceptions that escape the route exception handlers."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any exceptions."""
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc, str(uuid4()))

    def _handle_exception(self, request: Request, exc: Exception, error_id: str) -> JSONResponse:
        if isinstance(exc, TheaterError):
            log_theater_error(request, exc, error_id)
            return theater_error_response(exc, error_id)

        if isinstance(exc, (OperationalError, SQLTimeoutError)):
            logger.error(
                f"Database unavailable [{error_id}]: {exc}",
                extra={"error_id": error_id, "error_type": type(exc).__name__}
            )
            return theater_error_response(StorageError("request", "Database temporarily unavailable"), error_id)

        logger.error(
            f"Unexpected error [{error_id}]: {exc}",
            extra={
                "error_id": error_id,
                "error_type": type(exc).__name__,
                "method": request.method,
                "path": request.url.path,
                "traceback": traceback.format_exc()
            }
        )

        unexpected = TheaterError(
            "An unexpected error occurred",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"error_type": type(exc).__name__} if self.debug else None
        )
        response_data: Dict[str, Any] = {
            "error": unexpected.to_dict(),
            "error_id": error_id,
            "timestamp": _timestamp()
        }
        if self.debug:
            response_data["debug"] = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response_data
        )


async def theater_error_handler(request: Request, exc: TheaterError) -> JSONResponse:
    error_id = str(uuid4())
    log_theater_error(request, exc, error_id)
    return theater_error_response(exc, error_id)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body/query validation failures in the platform envelope."""
    field_errors: Dict[str, list] = {}
    for error in exc.errors():
        # Drop the "body"/"query" prefix so fields read like the request
        loc = [str(part) for part in error["loc"][1:]] or [str(part) for part in error["loc"]]
        field_errors.setdefault(".".join(loc), []).append(error["msg"])

    validation_error = ValidationError("Request validation failed", field_errors=field_errors)
    error_id = str(uuid4())
    log_theater_error(request, validation_error, error_id)
    return theater_error_response(validation_error, error_id)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TheaterError, theater_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
