"""
Tests for the retention purge of past shows.
"""

from datetime import date, timedelta

from sqlalchemy import func, select

from theater_booking_platform.models import Booking, BookingHistory, SeatAssignment, Show
from theater_booking_platform.services.booking_service import ADMIN, BookingService
from theater_booking_platform.services.retention_service import RetentionService


class TestRetentionPurge:
    """Bookings of shows older than the retention window are removed"""

    async def test_cutoff_is_fourteen_days_back(self, db_session):
        service = RetentionService(db_session)
        assert service.cutoff_date(date(2026, 3, 20)) == date(2026, 3, 6)

    async def test_purges_only_old_shows(self, db_session, make_show):
        today = date.today()
        old_show = await make_show(show_date=today - timedelta(days=20), display_label="Old")
        recent_show = await make_show(show_date=today - timedelta(days=10), display_label="Recent")

        bookings = BookingService(db_session)
        await bookings.create_booking(old_show.id, "Anna Weber", "anna@example.com", [1, 2])
        ben = await bookings.create_booking(old_show.id, "Ben Krause", "ben@example.com", [3])
        await bookings.cancel_booking(ben.id, performed_by=ADMIN)
        kept = await bookings.create_booking(recent_show.id, "Carla Roth", "carla@example.com", [4])

        result = await RetentionService(db_session).purge_expired_bookings(today=today)

        assert result["deletedBookings"] == 2
        # Cancelled bookings hold no seats any more
        assert result["deletedSeats"] == 2
        assert [s["id"] for s in result["affectedShows"]] == [str(old_show.id)]
        assert result["affectedShows"][0]["displayLabel"] == "Old"

        remaining = (await db_session.execute(select(Booking.id))).scalars().all()
        assert remaining == [kept.id]
        assert await db_session.scalar(
            select(func.count(SeatAssignment.id)).where(SeatAssignment.show_id == old_show.id)
        ) == 0
        assert await db_session.scalar(select(func.count(BookingHistory.id))) == 1

    async def test_shows_are_kept(self, db_session, make_show):
        old_show = await make_show(show_date=date.today() - timedelta(days=30))
        await BookingService(db_session).create_booking(old_show.id, "Anna Weber", "anna@example.com", [1])

        await RetentionService(db_session).purge_expired_bookings()

        assert await db_session.scalar(select(func.count(Show.id))) == 1

    async def test_show_on_cutoff_day_is_kept(self, db_session, make_show):
        today = date.today()
        edge_show = await make_show(show_date=today - timedelta(days=14))
        await BookingService(db_session).create_booking(edge_show.id, "Anna Weber", "anna@example.com", [1])

        result = await RetentionService(db_session).purge_expired_bookings(today=today)
        assert result["deletedBookings"] == 0
        assert result["affectedShows"] == []

    async def test_purge_in_chunks(self, db_session, make_show, monkeypatch):
        """Many old shows are purged across several transactions"""
        today = date.today()
        bookings = BookingService(db_session)
        for offset in range(5):
            old = await make_show(show_date=today - timedelta(days=20 + offset))
            await bookings.create_booking(old.id, "Anna Weber", "anna@example.com", [1, 2])

        service = RetentionService(db_session)
        monkeypatch.setattr(service.settings, "retention_purge_chunk_size", 2)
        result = await service.purge_expired_bookings(today=today)

        assert result["deletedBookings"] == 5
        assert result["deletedSeats"] == 10
        assert len(result["affectedShows"]) == 5

    async def test_nothing_to_purge(self, db_session, show):
        result = await RetentionService(db_session).purge_expired_bookings()
        assert result == {"deletedBookings": 0, "deletedSeats": 0, "affectedShows": []}
