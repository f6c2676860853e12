"""
Show service for managing the show catalog.
"""

import logging
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Booking, Show, ACTIVE_STATUSES
from ..config import get_settings
from ..cache import CacheInvalidator
from ..utils.exceptions import (
    ShowHasBookingsError,
    ShowNotFoundError,
    StorageError,
    ValidationError,
)
from ..utils.logging_config import log_business_event

logger = logging.getLogger(__name__)


class ShowService:
    """Service class for show catalog operations."""

    def __init__(self, db: AsyncSession):
        """Initialize the show service with database session."""
        self.db = db
        self.settings = get_settings()

    async def get_show(self, show_id: UUID) -> Show:
        """
        Get show by ID.

        Raises:
            ShowNotFoundError: If show is not found
        """
        result = await self.db.execute(select(Show).where(Show.id == show_id))
        show = result.scalar_one_or_none()
        if not show:
            raise ShowNotFoundError(str(show_id))
        return show

    async def list_shows(self) -> List[Dict[str, Any]]:
        """
        All shows with the number of active bookings each one holds.

        Returns:
            Show dicts ordered by date and time
        """
        booking_counts = (
            select(Booking.show_id.label("show_id"), func.count(Booking.id).label("bookings"))
            .where(Booking.status.in_(ACTIVE_STATUSES))
            .group_by(Booking.show_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Show, func.coalesce(booking_counts.c.bookings, 0))
            .outerjoin(booking_counts, booking_counts.c.show_id == Show.id)
            .order_by(Show.show_date.asc(), Show.show_time.asc())
        )
        return [
            {**self.serialize(show), "activeBookings": count}
            for show, count in result.all()
        ]

    async def create_show(self, show_data) -> Show:
        """
        Create a new show.

        Args:
            show_data: ShowCreate payload; total_seats falls back to the configured default

        Returns:
            Created show instance

        Raises:
            ValidationError: If the store rejects the show data
        """
        show = Show(
            title=show_data.title,
            show_date=show_data.date,
            show_time=show_data.time,
            display_label=show_data.display_label,
            total_seats=show_data.total_seats or self.settings.default_total_seats,
        )
        try:
            self.db.add(show)
            await self.db.commit()
            await self.db.refresh(show)
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create show: {e.orig}")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Storage error creating show: {e}")
            raise StorageError("create_show")

        await CacheInvalidator.invalidate_show_caches()
        log_business_event("show_created", {"show_id": str(show.id), "total_seats": show.total_seats}, actor="admin")
        return show

    async def update_show(self, show_id: UUID, show_data) -> Show:
        """
        Update a show that has no active bookings.

        Args:
            show_id: Show UUID
            show_data: ShowUpdate payload, only set fields are applied

        Returns:
            Updated show instance

        Raises:
            ShowNotFoundError: If show is not found
            ShowHasBookingsError: If the show still has active bookings
        """
        show = await self.get_show(show_id)
        await self._ensure_no_active_bookings(show_id)

        field_map = {
            "title": "title",
            "date": "show_date",
            "time": "show_time",
            "display_label": "display_label",
            "total_seats": "total_seats",
        }
        for field, value in show_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(show, field_map[field], value)

        try:
            await self.db.commit()
            await self.db.refresh(show)
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update show: {e.orig}")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Storage error updating show {show_id}: {e}")
            raise StorageError("update_show")

        await CacheInvalidator.invalidate_show_caches()
        log_business_event("show_updated", {"show_id": str(show_id)}, actor="admin")
        return show

    async def delete_show(self, show_id: UUID) -> None:
        """
        Delete a show that has no active bookings.

        Cancelled bookings of the show go with it.

        Raises:
            ShowNotFoundError: If show is not found
            ShowHasBookingsError: If the show still has active bookings
        """
        show = await self.get_show(show_id)
        await self._ensure_no_active_bookings(show_id)

        try:
            await self.db.delete(show)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Storage error deleting show {show_id}: {e}")
            raise StorageError("delete_show")

        await CacheInvalidator.invalidate_show_caches()
        log_business_event("show_deleted", {"show_id": str(show_id)}, actor="admin")

    async def _ensure_no_active_bookings(self, show_id: UUID) -> None:
        count = await self.db.scalar(
            select(func.count(Booking.id)).where(
                Booking.show_id == show_id,
                Booking.status.in_(ACTIVE_STATUSES)
            )
        )
        if count:
            raise ShowHasBookingsError(str(show_id), count)

    @staticmethod
    def serialize(show: Show) -> Dict[str, Any]:
        return {
            "id": str(show.id),
            "title": show.title,
            "date": show.show_date.isoformat(),
            "time": show.show_time,
            "displayLabel": show.display_label,
            "totalSeats": show.total_seats,
            "capacity": show.capacity,
        }
