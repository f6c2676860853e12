"""
Tests for show catalog administration and the public listing.
"""

import uuid
from datetime import date, timedelta

import pytest

from theater_booking_platform.schemas.show import ShowCreate, ShowUpdate
from theater_booking_platform.services.booking_service import ADMIN, BookingService
from theater_booking_platform.services.seat_service import SeatService
from theater_booking_platform.services.show_service import ShowService
from theater_booking_platform.utils.exceptions import ShowHasBookingsError, ShowNotFoundError


def _show_data(**overrides) -> ShowCreate:
    fields = {
        "title": "Der zerbrochne Krug",
        "date": date.today() + timedelta(days=14),
        "time": "19:30",
        "displayLabel": "Saturday 19:30",
    }
    fields.update(overrides)
    return ShowCreate(**fields)


class TestShowCatalog:
    """Create, update and delete shows"""

    async def test_create_uses_default_hall_size(self, db_session):
        show = await ShowService(db_session).create_show(_show_data())
        assert show.total_seats == 70
        assert show.capacity == 68

    async def test_create_with_explicit_seat_count(self, db_session):
        show = await ShowService(db_session).create_show(_show_data(totalSeats=68))
        assert show.total_seats == 68
        assert show.capacity == 66

    async def test_update_without_bookings(self, db_session, show):
        service = ShowService(db_session)
        updated = await service.update_show(show.id, ShowUpdate(time="20:00", displayLabel="Friday 20:00"))
        assert updated.show_time == "20:00"
        assert updated.display_label == "Friday 20:00"
        assert updated.title == show.title

    async def test_update_rejected_with_active_bookings(self, db_session, show):
        await BookingService(db_session).create_booking(show.id, "Anna Weber", "anna@example.com", [1])

        with pytest.raises(ShowHasBookingsError) as exc_info:
            await ShowService(db_session).update_show(show.id, ShowUpdate(totalSeats=40))
        assert exc_info.value.details["booking_count"] == 1

    async def test_delete_rejected_with_active_bookings(self, db_session, show):
        await BookingService(db_session).create_booking(show.id, "Anna Weber", "anna@example.com", [1])

        with pytest.raises(ShowHasBookingsError):
            await ShowService(db_session).delete_show(show.id)

    async def test_delete_after_cancellation(self, db_session, show):
        """Cancelled bookings do not block deletion and go with the show"""
        bookings = BookingService(db_session)
        booking = await bookings.create_booking(show.id, "Anna Weber", "anna@example.com", [1])
        await bookings.cancel_booking(booking.id, performed_by=ADMIN)

        service = ShowService(db_session)
        await service.delete_show(show.id)

        with pytest.raises(ShowNotFoundError):
            await service.get_show(show.id)

    async def test_unknown_show(self, db_session):
        with pytest.raises(ShowNotFoundError):
            await ShowService(db_session).delete_show(uuid.uuid4())

    async def test_admin_listing_counts_active_bookings(self, db_session, show, make_show):
        await make_show(show_date=date.today() + timedelta(days=8), display_label="Saturday 19:30")
        bookings = BookingService(db_session)
        await bookings.create_booking(show.id, "Anna Weber", "anna@example.com", [1])
        ben = await bookings.create_booking(show.id, "Ben Krause", "ben@example.com", [2])
        await bookings.cancel_booking(ben.id, performed_by=ADMIN)

        listing = await ShowService(db_session).list_shows()
        assert [s["activeBookings"] for s in listing] == [1, 0]


class TestPublicListing:
    """Shows with seat availability"""

    async def test_listing_ordered_with_counts(self, db_session, make_show):
        later = await make_show(show_date=date.today() + timedelta(days=9), display_label="Sunday 18:00")
        sooner = await make_show(show_date=date.today() + timedelta(days=2), display_label="Thursday 19:30")
        await BookingService(db_session).create_booking(later.id, "Anna Weber", "anna@example.com", [1, 2, 3])

        shows = await SeatService(db_session).list_shows_with_availability()

        assert [s["id"] for s in shows] == [str(sooner.id), str(later.id)]
        assert shows[1]["bookedSeats"] == 3
        assert shows[1]["availableSeats"] == 65
        assert shows[0]["availableSeats"] == 68
        assert not shows[0]["isSoldOut"]

    async def test_sold_out_show(self, db_session, make_show):
        tiny = await make_show(total_seats=3)
        await BookingService(db_session).create_booking(tiny.id, "Anna Weber", "anna@example.com", [1, 2])

        shows = await SeatService(db_session).list_shows_with_availability()
        assert shows[0]["totalSeats"] == 2
        assert shows[0]["isSoldOut"]
