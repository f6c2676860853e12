"""
Common schemas for API responses and error handling.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Schema for detailed error information."""

    error_code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    suggestions: Optional[List[str]] = Field(None, description="Helpful suggestions for resolving the error")


class ErrorResponse(BaseModel):
    """Schema for API error responses."""

    error: ErrorDetail
    error_id: str
    timestamp: str
    conflictingSeats: Optional[List[int]] = Field(
        None,
        description="Seats that were already taken, present on SEAT_CONFLICT only"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": {
                        "error_code": "SEAT_CONFLICT",
                        "message": "Seats already booked: 14, 15",
                        "details": {
                            "conflicting_seats": [14, 15],
                            "show_id": "123e4567-e89b-12d3-a456-426614174000"
                        },
                        "suggestions": ["Choose different seats", "Refresh the seat map"]
                    },
                    "error_id": "9b2f4c1e-0a55-4d2c-9e0b-8f6f3f1c2d11",
                    "timestamp": "2026-03-01T19:30:00+00:00",
                    "conflictingSeats": [14, 15]
                },
                {
                    "error": {
                        "error_code": "VALIDATION_ERROR",
                        "message": "Invalid input data",
                        "details": {"field_errors": {"seats": ["Seat 0 cannot be booked"]}}
                    },
                    "error_id": "1c7d2b9a-6f0e-4c33-8d7a-2e5b4a9f0c88",
                    "timestamp": "2026-03-01T19:30:00+00:00"
                }
            ]
        }
    }


class MessageResponse(BaseModel):
    """Schema for simple success responses."""

    message: str = Field(..., description="Success message")
