"""
Custom exceptions for the Theater booking platform.
"""

from typing import Any, Dict, Optional, List
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the platform."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Business logic errors
    SEAT_CONFLICT = "SEAT_CONFLICT"
    DUPLICATE_BOOKING = "DUPLICATE_BOOKING"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    BOOKING_ALREADY_CANCELLED = "BOOKING_ALREADY_CANCELLED"
    INVALID_BOOKING_STATE = "INVALID_BOOKING_STATE"
    SHOW_HAS_BOOKINGS = "SHOW_HAS_BOOKINGS"

    # Infrastructure errors
    STORAGE_ERROR = "STORAGE_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


class TheaterError(Exception):
    """Base exception class for the Theater platform."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        retry_after: Optional[int] = None
    ):
        """Initialize the exception with comprehensive error information."""
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.suggestions:
            result["suggestions"] = self.suggestions

        if self.retry_after:
            result["retry_after"] = self.retry_after

        return result


class ValidationError(TheaterError):
    """Exception raised for validation errors."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.VALIDATION_ERROR,
            details={"field_errors": field_errors} if field_errors else None,
            **kwargs
        )
        self.field_errors = field_errors or {}


class NotFoundError(TheaterError):
    """Base exception for resource not found errors."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_id: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id} if resource_type else None,
            **kwargs
        )


class ShowNotFoundError(NotFoundError):
    """Exception raised when a show is not found."""

    def __init__(self, show_id: str, **kwargs):
        super().__init__(
            f"Show {show_id} not found",
            resource_type="show",
            resource_id=str(show_id),
            suggestions=["Check the show ID", "Browse upcoming shows"],
            **kwargs
        )


class BookingNotFoundError(NotFoundError):
    """Exception raised when a booking is not found."""

    def __init__(self, booking_id: str, **kwargs):
        super().__init__(
            f"Booking {booking_id} not found",
            resource_type="booking",
            resource_id=str(booking_id),
            suggestions=["Check the booking ID from your confirmation email"],
            **kwargs
        )


class AuthenticationError(TheaterError):
    """Exception raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.UNAUTHORIZED,
            suggestions=["Log in again"],
            **kwargs
        )


class AuthorizationError(TheaterError):
    """Exception raised for authorization failures."""

    def __init__(self, message: str = "Access denied", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.FORBIDDEN,
            **kwargs
        )


class EmailMismatchError(AuthorizationError):
    """Exception raised when the supplied email does not own the booking."""

    def __init__(self, booking_id: str, **kwargs):
        super().__init__(
            "Email does not match the booking",
            details={"booking_id": str(booking_id)},
            suggestions=["Use the email address the booking was made with"],
            **kwargs
        )


class BusinessLogicError(TheaterError):
    """Base exception for business logic violations."""
    pass


class SeatConflictError(BusinessLogicError):
    """Exception raised when requested seats are held by another booking."""

    def __init__(self, conflicting_seats: List[int], show_id: Optional[str] = None, **kwargs):
        self.conflicting_seats = sorted(conflicting_seats)
        super().__init__(
            f"Seats already booked: {', '.join(str(s) for s in self.conflicting_seats)}",
            error_code=ErrorCode.SEAT_CONFLICT,
            details={
                "conflicting_seats": self.conflicting_seats,
                "show_id": str(show_id) if show_id else None,
            },
            suggestions=["Choose different seats", "Refresh the seat map"],
            **kwargs
        )


class DuplicateBookingError(BusinessLogicError):
    """Exception raised when the email already holds an active booking for the show."""

    def __init__(self, show_id: str, **kwargs):
        super().__init__(
            "An active booking for this email already exists for this show",
            error_code=ErrorCode.DUPLICATE_BOOKING,
            details={"show_id": str(show_id)},
            suggestions=["Modify your existing booking instead"],
            **kwargs
        )


class CapacityExceededError(BusinessLogicError):
    """Exception raised when the request needs more seats than are free."""

    def __init__(self, requested: int, available: int, show_id: Optional[str] = None, **kwargs):
        super().__init__(
            f"Not enough seats available: requested {requested}, available {available}",
            error_code=ErrorCode.CAPACITY_EXCEEDED,
            details={"requested": requested, "available": available, "show_id": str(show_id) if show_id else None},
            suggestions=["Book fewer seats", "Choose another show"],
            **kwargs
        )


class BookingAlreadyCancelledError(BusinessLogicError):
    """Exception raised when operating on a cancelled booking."""

    def __init__(self, booking_id: str, **kwargs):
        super().__init__(
            f"Booking {booking_id} is already cancelled",
            error_code=ErrorCode.BOOKING_ALREADY_CANCELLED,
            details={"booking_id": str(booking_id)},
            **kwargs
        )


class InvalidBookingStateError(BusinessLogicError):
    """Exception raised when a booking is missing or in the wrong state for a transition."""

    def __init__(self, booking_id: str, required_state: str, current_state: Optional[str] = None, **kwargs):
        super().__init__(
            f"Booking not found or not {required_state.replace('_', ' ')}",
            error_code=ErrorCode.INVALID_BOOKING_STATE,
            details={
                "booking_id": str(booking_id),
                "current_state": current_state,
                "required_state": required_state,
            },
            **kwargs
        )


class ShowHasBookingsError(BusinessLogicError):
    """Exception raised when changing a show that still has active bookings."""

    def __init__(self, show_id: str, booking_count: int, **kwargs):
        super().__init__(
            f"Cannot change show {show_id} with {booking_count} active bookings",
            error_code=ErrorCode.SHOW_HAS_BOOKINGS,
            details={"show_id": str(show_id), "booking_count": booking_count},
            suggestions=["Cancel the bookings first"],
            **kwargs
        )


class StorageError(TheaterError):
    """Exception raised when the relational store fails."""

    def __init__(self, operation: str, message: str = "Storage operation failed", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.STORAGE_ERROR,
            details={"operation": operation},
            suggestions=["Try again later"],
            **kwargs
        )


class RateLimitError(TheaterError):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window: int, retry_after: int, **kwargs):
        super().__init__(
            f"Rate limit exceeded: {limit} requests per {window} seconds",
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            details={"limit": limit, "window": window},
            retry_after=retry_after,
            suggestions=[f"Wait {retry_after} seconds before retrying"],
            **kwargs
        )
