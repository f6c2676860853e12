"""
Concurrent writers on the same show: no seat is ever assigned twice.

Each writer uses its own session, as concurrent HTTP requests do.
"""

import asyncio

from theater_booking_platform.services.booking_service import BookingService
from theater_booking_platform.services.seat_service import SeatService
from theater_booking_platform.utils.exceptions import (
    DuplicateBookingError,
    SeatConflictError,
)

WRITERS = 8


async def _attempt(session_factory, coro_factory):
    async with session_factory() as session:
        try:
            return await coro_factory(BookingService(session))
        except (SeatConflictError, DuplicateBookingError) as e:
            return e


class TestConcurrentBooking:
    """Race conditions between independent writers"""

    async def test_same_seats_exactly_one_winner(self, session_factory, show):
        """N writers race for seats 11 and 12; one wins, the rest see a conflict"""
        results = await asyncio.gather(*[
            _attempt(
                session_factory,
                lambda service, i=i: service.create_booking(
                    show.id, f"Visitor {i}", f"visitor{i}@example.com", [11, 12]
                ),
            )
            for i in range(WRITERS)
        ])

        winners = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, SeatConflictError)]
        assert len(winners) == 1
        assert len(conflicts) == WRITERS - 1
        assert all(c.conflicting_seats == [11, 12] for c in conflicts)

        async with session_factory() as session:
            assert await SeatService(session).booked_seats(show.id) == [11, 12]

    async def test_overlapping_seats_never_double_assigned(self, session_factory, show):
        """Writers want overlapping pairs; every seat ends up with at most one booking"""
        requests = [[20 + i, 21 + i] for i in range(WRITERS)]
        results = await asyncio.gather(*[
            _attempt(
                session_factory,
                lambda service, i=i, seats=seats: service.create_booking(
                    show.id, f"Visitor {i}", f"visitor{i}@example.com", seats
                ),
            )
            for i, seats in enumerate(requests)
        ])

        winners = [r for r in results if not isinstance(r, Exception)]
        assigned = [seat for booking in winners for seat in booking.seat_numbers]
        assert len(assigned) == len(set(assigned))

        async with session_factory() as session:
            seat_service = SeatService(session)
            booked = await seat_service.booked_seats(show.id)
            assert sorted(assigned) == booked
            assert await seat_service.availability(show.id) == 68 - len(booked)

    async def test_same_email_only_one_booking(self, session_factory, show):
        """Parallel requests from one email get one booking"""
        results = await asyncio.gather(*[
            _attempt(
                session_factory,
                lambda service, i=i: service.create_booking(
                    show.id, "Anna Weber", "anna@example.com", [30 + i]
                ),
            )
            for i in range(WRITERS)
        ])

        winners = [r for r in results if not isinstance(r, Exception)]
        duplicates = [r for r in results if isinstance(r, DuplicateBookingError)]
        assert len(winners) == 1
        assert len(duplicates) == WRITERS - 1

    async def test_modification_races_creation(self, session_factory, show):
        """A seat change and a new booking race for seat 40; exactly one gets it"""
        async with session_factory() as session:
            anna = await BookingService(session).create_booking(
                show.id, "Anna Weber", "anna@example.com", [39]
            )

        results = await asyncio.gather(
            _attempt(session_factory, lambda service: service.update_booking_seats(anna.id, [39, 40])),
            _attempt(
                session_factory,
                lambda service: service.create_booking(show.id, "Ben Krause", "ben@example.com", [40]),
            ),
        )

        assert sum(1 for r in results if isinstance(r, SeatConflictError)) == 1
        async with session_factory() as session:
            assert await SeatService(session).booked_seats(show.id) == [39, 40]
