"""
Pydantic schemas for booking-related API requests and responses.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt, field_validator

from ..models.booking import BookingStatus
from ..models.booking_history import BookingAction
from ..services.seat_topology import MAX_SEATS_PER_BOOKING, seat_labels


class BookingCreateRequest(BaseModel):
    """Schema for creating a new booking."""

    model_config = ConfigDict(populate_by_name=True)

    show_id: UUID = Field(..., alias="showId", description="ID of the show to book")
    name: str = Field(..., max_length=255, description="Visitor name")
    email: EmailStr = Field(..., description="Visitor email, one active booking per show")
    seats: List[StrictInt] = Field(
        ..., min_length=1, max_length=MAX_SEATS_PER_BOOKING,
        description="0-based seat numbers"
    )

    @field_validator("name")
    @classmethod
    def name_must_have_two_characters(cls, v):
        """Validate that the trimmed name has at least two characters."""
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class BookingUpdateRequest(BaseModel):
    """Schema for replacing the seats of a booking."""

    seats: List[StrictInt] = Field(..., min_length=1, max_length=MAX_SEATS_PER_BOOKING)


class BookingCancelRequest(BaseModel):
    """Schema for cancelling a booking; the email proves ownership."""

    email: EmailStr


class BookingShowInfo(BaseModel):
    """Show details embedded in a booking response."""

    id: str
    title: str
    date: str
    time: str
    displayLabel: str


class BookingResponse(BaseModel):
    """Schema for booking responses."""

    id: str
    showId: str
    name: str
    email: str
    status: BookingStatus
    seats: List[int]
    seatLabels: List[str]
    createdAt: datetime
    updatedAt: datetime
    cancelledAt: Optional[datetime] = None
    checkedInAt: Optional[datetime] = None
    show: Optional[BookingShowInfo] = None


class CreateBookingResponse(BaseModel):
    """Response for successful booking creation."""

    bookingId: str
    message: str = "Booking created successfully"


class BookingListResponse(BaseModel):
    """Schema for booking list responses."""

    bookings: List[BookingResponse]
    total: int


class BookingHistoryResponse(BaseModel):
    """Schema for booking history entries."""

    id: str
    bookingId: str
    action: BookingAction
    details: Optional[str] = None
    performedBy: str
    createdAt: datetime


def booking_to_response(booking) -> BookingResponse:
    """Create a BookingResponse from a booking model with show and seats loaded."""
    seats = booking.seat_numbers
    show = booking.show
    return BookingResponse(
        id=str(booking.id),
        showId=str(booking.show_id),
        name=booking.name,
        email=booking.email,
        status=booking.status,
        seats=seats,
        seatLabels=seat_labels(seats),
        createdAt=booking.created_at,
        updatedAt=booking.updated_at,
        cancelledAt=booking.cancelled_at,
        checkedInAt=booking.checked_in_at,
        show=BookingShowInfo(
            id=str(show.id),
            title=show.title,
            date=show.show_date.isoformat(),
            time=show.show_time,
            displayLabel=show.display_label,
        ) if show else None,
    )


def history_to_response(entry) -> BookingHistoryResponse:
    return BookingHistoryResponse(
        id=str(entry.id),
        bookingId=str(entry.booking_id),
        action=entry.action,
        details=entry.details,
        performedBy=entry.performed_by,
        createdAt=entry.created_at,
    )
