"""
Public show listing and seat map endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..services.seat_service import SeatService
from ..schemas.show import ShowListResponse, ShowSeatsResponse

router = APIRouter(prefix="/shows", tags=["shows"])


@router.get("", response_model=ShowListResponse)
async def list_shows(db: AsyncSession = Depends(get_db)):
    """
    List all shows with their seat availability.

    Returns:
        Shows ordered by date and time
    """
    seat_service = SeatService(db)
    shows = await seat_service.list_shows_with_availability()
    return {"shows": shows}


@router.get("/{show_id}/seats", response_model=ShowSeatsResponse)
async def get_show_seats(
    show_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    """
    Get the booked seats of a show.

    Args:
        show_id: Show UUID
        db: Database session

    Returns:
        Booked seat numbers with assignable and available seat counts
    """
    seat_service = SeatService(db)
    return await seat_service.get_show_seats(show_id)
