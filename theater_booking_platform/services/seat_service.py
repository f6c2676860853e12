"""
Seat inventory: which seats of a show are taken and how many remain.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Booking, Show, SeatAssignment, ACTIVE_STATUSES
from ..cache import get_cache, CacheKeyBuilder, CacheTTL
from ..utils.exceptions import ShowNotFoundError

logger = logging.getLogger(__name__)


class SeatService:
    """Read-side service for seat availability.

    Every answer is computed from the store on demand; nothing is kept in
    process memory between requests.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the seat service with database session."""
        self.db = db
        self.cache = get_cache()

    async def get_show(self, show_id: UUID) -> Show:
        result = await self.db.execute(select(Show).where(Show.id == show_id))
        show = result.scalar_one_or_none()
        if not show:
            raise ShowNotFoundError(str(show_id))
        return show

    async def booked_seats(self, show_id: UUID, exclude_booking_id: Optional[UUID] = None) -> List[int]:
        """
        Seat numbers held by non-cancelled bookings of a show.

        Args:
            show_id: Show UUID
            exclude_booking_id: Leave out the seats of this booking

        Returns:
            Distinct seat numbers, ascending
        """
        query = (
            select(SeatAssignment.seat_number)
            .join(Booking, Booking.id == SeatAssignment.booking_id)
            .where(
                SeatAssignment.show_id == show_id,
                Booking.status.in_(ACTIVE_STATUSES)
            )
            .distinct()
            .order_by(SeatAssignment.seat_number)
        )
        if exclude_booking_id is not None:
            query = query.where(SeatAssignment.booking_id != exclude_booking_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def availability(self, show_id: UUID) -> int:
        """
        Seats still free for a show.

        Raises:
            ShowNotFoundError: If the show does not exist
        """
        show = await self.get_show(show_id)
        booked = await self.booked_seats(show_id)
        return max(show.capacity - len(booked), 0)

    async def get_show_seats(self, show_id: UUID) -> Dict[str, Any]:
        """
        Seat map summary used by the seat picker.

        Args:
            show_id: Show UUID

        Returns:
            Dict with showId, bookedSeats, totalSeats and availableSeats

        Raises:
            ShowNotFoundError: If the show does not exist
        """
        show = await self.get_show(show_id)
        booked = await self.booked_seats(show_id)
        return {
            "showId": str(show.id),
            "bookedSeats": booked,
            "totalSeats": show.capacity,
            "availableSeats": max(show.capacity - len(booked), 0),
        }

    async def list_shows_with_availability(self) -> List[Dict[str, Any]]:
        """
        All shows ordered by date and time, with seat counts.

        The listing is cached briefly; every booking write invalidates it.
        """
        cache_key = CacheKeyBuilder.show_list()
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return cached

        booked_counts = (
            select(
                SeatAssignment.show_id.label("show_id"),
                func.count(SeatAssignment.id).label("booked")
            )
            .join(Booking, Booking.id == SeatAssignment.booking_id)
            .where(Booking.status.in_(ACTIVE_STATUSES))
            .group_by(SeatAssignment.show_id)
            .subquery()
        )

        result = await self.db.execute(
            select(Show, func.coalesce(booked_counts.c.booked, 0))
            .outerjoin(booked_counts, booked_counts.c.show_id == Show.id)
            .order_by(Show.show_date.asc(), Show.show_time.asc())
        )

        shows = []
        for show, booked in result.all():
            available = max(show.capacity - booked, 0)
            shows.append({
                "id": str(show.id),
                "title": show.title,
                "date": show.show_date.isoformat(),
                "time": show.show_time,
                "displayLabel": show.display_label,
                "totalSeats": show.capacity,
                "bookedSeats": booked,
                "availableSeats": available,
                "isSoldOut": available == 0,
            })

        await self.cache.set(cache_key, shows, CacheTTL.SHOW_LIST)
        return shows
