"""
FastAPI routes for visitor bookings.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..services.booking_service import BookingService
from ..schemas.booking import (
    BookingCancelRequest,
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
    CreateBookingResponse,
    booking_to_response,
)
from ..schemas.common import ErrorResponse, MessageResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=CreateBookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}
)
async def create_booking(
    request: BookingCreateRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Book up to five seats of a show.

    Seats are checked and assigned in one transaction; if any requested seat
    was taken in the meantime the whole request fails with SEAT_CONFLICT and
    the taken seats are listed in ``conflictingSeats``.
    """
    booking_service = BookingService(db)
    booking = await booking_service.create_booking(
        show_id=request.show_id,
        name=request.name,
        email=request.email,
        seats=request.seats
    )
    return CreateBookingResponse(
        bookingId=str(booking.id),
        message="Booking created successfully. A confirmation email is on its way."
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    """Get a booking with its seats and show."""
    booking_service = BookingService(db)
    booking = await booking_service.get_booking(booking_id)
    return booking_to_response(booking)


@router.patch(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}
)
async def update_booking(
    booking_id: UUID,
    request: BookingUpdateRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Replace the seats of a booking.

    The booking's own seats never conflict with themselves, so seats can be
    kept, added or dropped in one call.
    """
    booking_service = BookingService(db)
    booking = await booking_service.update_booking_seats(booking_id, request.seats)
    return booking_to_response(booking)


@router.delete("/{booking_id}", response_model=MessageResponse)
async def cancel_booking(
    booking_id: UUID,
    request: BookingCancelRequest,
    db: AsyncSession = Depends(get_db)
):
    """Cancel a booking; the email must match the one it was made with."""
    booking_service = BookingService(db)
    await booking_service.cancel_booking(booking_id, email=request.email)
    logger.info(f"Booking {booking_id} cancelled by visitor")
    return MessageResponse(message="Booking cancelled successfully")
