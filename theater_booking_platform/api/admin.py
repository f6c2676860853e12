"""
Staff endpoints: admin session, door check-in and booking administration.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..services.booking_service import ADMIN, BookingService
from ..services.retention_service import RetentionService
from ..schemas.admin import CheckInRequest, LoginRequest, LoginResponse, PurgeResponse
from ..schemas.booking import (
    BookingHistoryResponse,
    BookingListResponse,
    BookingResponse,
    booking_to_response,
    history_to_response,
)
from ..schemas.common import MessageResponse
from ..utils.auth import AdminTokenData, create_admin_token, verify_admin_password
from ..utils.dependencies import require_admin
from ..utils.exceptions import AuthenticationError
from ..utils.logging_config import log_security_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=LoginResponse)
async def login(login_data: LoginRequest, request: Request, response: Response):
    """
    Exchange the shared admin password for a session token.

    The token is returned in the body and set as an httpOnly cookie.

    Raises:
        AuthenticationError: If the password is wrong or no password is configured
    """
    if not verify_admin_password(login_data.password):
        log_security_event(
            "admin_login_failed",
            {"client_ip": request.client.host if request.client else None}
        )
        raise AuthenticationError("Invalid admin password")

    settings = get_settings()
    token = create_admin_token()
    response.set_cookie(
        key=settings.admin_cookie_name,
        value=token.access_token,
        max_age=token.expires_in,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
    )
    logger.info("Admin session started")
    return LoginResponse(**token.model_dump())


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the admin session cookie."""
    response.delete_cookie(get_settings().admin_cookie_name)
    return MessageResponse(message="Logged out")


@router.post("/checkin", response_model=BookingResponse)
async def check_in(
    request: CheckInRequest,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Check a confirmed booking in at the door.

    Unknown bookings and bookings that are not confirmed both answer 404.
    """
    booking_service = BookingService(db)
    booking = await booking_service.check_in_booking(request.booking_id)
    return booking_to_response(booking)


@router.post("/checkout", response_model=BookingResponse)
async def check_out(
    request: CheckInRequest,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Undo the check-in of a booking."""
    booking_service = BookingService(db)
    booking = await booking_service.check_out_booking(request.booking_id)
    return booking_to_response(booking)


@router.delete("/bookings/purge", response_model=PurgeResponse)
async def purge_bookings(
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete the bookings of shows past the retention window.

    Visitors are not notified.
    """
    retention_service = RetentionService(db)
    return await retention_service.purge_expired_bookings()


@router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(
    showId: Optional[UUID] = None,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List active bookings, newest first, optionally for one show."""
    booking_service = BookingService(db)
    bookings = await booking_service.list_active_bookings(show_id=showId)
    return BookingListResponse(
        bookings=[booking_to_response(b) for b in bookings],
        total=len(bookings)
    )


@router.delete("/bookings/{booking_id}", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Cancel any booking without the visitor's email."""
    booking_service = BookingService(db)
    booking = await booking_service.cancel_booking(booking_id, performed_by=ADMIN)
    return booking_to_response(booking)


@router.get("/history", response_model=BookingListResponse)
async def check_in_history(
    showId: Optional[UUID] = None,
    limit: int = 100,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Checked-in bookings, most recent check-in first."""
    booking_service = BookingService(db)
    bookings = await booking_service.list_check_in_history(show_id=showId, limit=min(max(limit, 1), 500))
    return BookingListResponse(
        bookings=[booking_to_response(b) for b in bookings],
        total=len(bookings)
    )


@router.get("/bookings/{booking_id}/history", response_model=List[BookingHistoryResponse])
async def booking_history(
    booking_id: UUID,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail of one booking, oldest entry first."""
    booking_service = BookingService(db)
    entries = await booking_service.get_booking_history(booking_id)
    return [history_to_response(entry) for entry in entries]
