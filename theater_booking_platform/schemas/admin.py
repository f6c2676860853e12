"""
Schemas for the staff endpoints.
"""

from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Shared admin password."""

    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Issued admin session."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")


class CheckInRequest(BaseModel):
    """Booking to check in or out at the door."""

    model_config = ConfigDict(populate_by_name=True)

    booking_id: UUID = Field(..., alias="bookingId")


class PurgedShow(BaseModel):
    id: str
    title: str
    date: str
    displayLabel: str


class PurgeResponse(BaseModel):
    """Result of a retention purge."""

    deletedBookings: int
    deletedSeats: int
    affectedShows: List[PurgedShow]
