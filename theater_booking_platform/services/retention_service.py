"""
Retention purge: remove visitor data of shows that are long over.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Booking, BookingHistory, SeatAssignment, Show
from ..config import get_settings
from ..cache import CacheInvalidator
from ..utils.exceptions import StorageError
from ..utils.logging_config import log_business_event

logger = logging.getLogger(__name__)


class RetentionService:
    """Deletes bookings, seat assignments and history of past shows.

    Shows themselves are kept. No visitor is notified.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()

    def cutoff_date(self, today: Optional[date] = None) -> date:
        """Shows dated strictly before this day are purged."""
        return (today or date.today()) - timedelta(days=self.settings.retention_days)

    async def purge_expired_bookings(self, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Purge booking data of every show older than the retention window.

        Work is committed in chunks of ``retention_purge_chunk_size`` shows so
        one run never holds a long transaction.

        Args:
            today: Reference day, defaults to the current date

        Returns:
            Dict with deletedBookings, deletedSeats and affectedShows

        Raises:
            StorageError: When the store fails; chunks already committed stay purged
        """
        cutoff = self.cutoff_date(today)

        try:
            result = await self.session.execute(
                select(Show)
                .where(Show.show_date < cutoff)
                .order_by(Show.show_date.asc(), Show.show_time.asc())
            )
            shows = list(result.scalars().all())
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage error listing shows for purge: {e}")
            raise StorageError("purge_expired_bookings")

        affected_shows: List[Dict[str, Any]] = [
            {
                "id": str(show.id),
                "title": show.title,
                "date": show.show_date.isoformat(),
                "displayLabel": show.display_label,
            }
            for show in shows
        ]

        deleted_bookings = 0
        deleted_seats = 0
        chunk_size = max(self.settings.retention_purge_chunk_size, 1)

        for start in range(0, len(shows), chunk_size):
            show_ids = [show.id for show in shows[start:start + chunk_size]]
            try:
                bookings, seats = await self._purge_chunk(show_ids)
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Storage error purging bookings of {len(show_ids)} shows: {e}")
                raise StorageError("purge_expired_bookings")

            deleted_bookings += bookings
            deleted_seats += seats

        if shows:
            await CacheInvalidator.invalidate_show_caches()

        log_business_event(
            "bookings_purged",
            {
                "cutoff": cutoff.isoformat(),
                "deleted_bookings": deleted_bookings,
                "deleted_seats": deleted_seats,
                "affected_show_count": len(shows),
            },
        )

        return {
            "deletedBookings": deleted_bookings,
            "deletedSeats": deleted_seats,
            "affectedShows": affected_shows,
        }

    async def _purge_chunk(self, show_ids) -> tuple:
        booking_count = await self.session.scalar(
            select(func.count(Booking.id)).where(Booking.show_id.in_(show_ids))
        )
        seat_count = await self.session.scalar(
            select(func.count(SeatAssignment.id)).where(SeatAssignment.show_id.in_(show_ids))
        )

        booking_ids = select(Booking.id).where(Booking.show_id.in_(show_ids))
        await self.session.execute(
            delete(SeatAssignment)
            .where(SeatAssignment.show_id.in_(show_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(BookingHistory)
            .where(BookingHistory.booking_id.in_(booking_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Booking)
            .where(Booking.show_id.in_(show_ids))
            .execution_options(synchronize_session=False)
        )
        return booking_count or 0, seat_count or 0
