"""
HTTP tests for the visitor API: show listing, seat map and the booking
lifecycle as a browser drives it.
"""

import uuid

import pytest

API = "/api/v1"


async def _book(client, show_id, email, seats, name="Anna Weber"):
    return await client.post(
        f"{API}/bookings",
        json={"showId": str(show_id), "name": name, "email": email, "seats": seats},
    )


class TestShowEndpoints:
    """Public show listing and seat map"""

    async def test_list_shows(self, client, show):
        response = await client.get(f"{API}/shows")

        assert response.status_code == 200
        shows = response.json()["shows"]
        assert len(shows) == 1
        assert shows[0]["id"] == str(show.id)
        assert shows[0]["displayLabel"] == "Friday 19:30"
        assert shows[0]["totalSeats"] == 68
        assert shows[0]["availableSeats"] == 68

    async def test_seat_map(self, client, show):
        await _book(client, show.id, "anna@example.com", [14, 15])

        response = await client.get(f"{API}/shows/{show.id}/seats")

        assert response.status_code == 200
        assert response.json() == {
            "showId": str(show.id),
            "bookedSeats": [14, 15],
            "totalSeats": 68,
            "availableSeats": 66,
        }

    async def test_seat_map_unknown_show(self, client):
        response = await client.get(f"{API}/shows/{uuid.uuid4()}/seats")
        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "NOT_FOUND"


class TestBookingLifecycle:
    """Create, conflict, modify and cancel over HTTP"""

    async def test_full_lifecycle(self, client, make_show):
        show = await make_show(total_seats=68)

        created = await _book(client, show.id, "anna@example.com", [1, 2])
        assert created.status_code == 201
        booking_id = created.json()["bookingId"]

        conflict = await _book(client, show.id, "ben@example.com", [2, 3], name="Ben Krause")
        assert conflict.status_code == 409
        body = conflict.json()
        assert body["error"]["error_code"] == "SEAT_CONFLICT"
        assert body["conflictingSeats"] == [2]

        modified = await client.patch(f"{API}/bookings/{booking_id}", json={"seats": [1, 2, 3]})
        assert modified.status_code == 200
        assert modified.json()["seats"] == [1, 2, 3]
        assert modified.json()["seatLabels"] == ["A2", "A3", "A4"]

        cancelled = await client.request(
            "DELETE", f"{API}/bookings/{booking_id}", json={"email": "anna@example.com"}
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["message"] == "Booking cancelled successfully"

        seats = (await client.get(f"{API}/shows/{show.id}/seats")).json()
        assert seats["bookedSeats"] == []
        assert seats["availableSeats"] == 66

    async def test_get_booking(self, client, show):
        created = await _book(client, show.id, "Anna@Example.com", [13])
        booking_id = created.json()["bookingId"]

        response = await client.get(f"{API}/bookings/{booking_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "anna@example.com"
        assert body["status"] == "confirmed"
        assert body["seatLabels"] == ["B4"]
        assert body["show"]["id"] == str(show.id)

    async def test_duplicate_email(self, client, show):
        await _book(client, show.id, "anna@example.com", [1])

        response = await _book(client, show.id, "anna@example.com", [2])

        assert response.status_code == 409
        assert response.json()["error"]["error_code"] == "DUPLICATE_BOOKING"
        assert "conflictingSeats" not in response.json()

    async def test_rebook_after_cancel(self, client, show):
        first = await _book(client, show.id, "anna@example.com", [1])
        await client.request(
            "DELETE", f"{API}/bookings/{first.json()['bookingId']}", json={"email": "anna@example.com"}
        )

        response = await _book(client, show.id, "anna@example.com", [1])
        assert response.status_code == 201

    async def test_cancel_with_wrong_email(self, client, show):
        created = await _book(client, show.id, "anna@example.com", [1])

        response = await client.request(
            "DELETE", f"{API}/bookings/{created.json()['bookingId']}", json={"email": "ben@example.com"}
        )

        assert response.status_code == 403
        booking = await client.get(f"{API}/bookings/{created.json()['bookingId']}")
        assert booking.json()["status"] == "confirmed"

    async def test_cancel_twice(self, client, show):
        created = await _book(client, show.id, "anna@example.com", [1])
        url = f"{API}/bookings/{created.json()['bookingId']}"
        await client.request("DELETE", url, json={"email": "anna@example.com"})

        response = await client.request("DELETE", url, json={"email": "anna@example.com"})
        assert response.status_code == 409
        assert response.json()["error"]["error_code"] == "BOOKING_ALREADY_CANCELLED"

    async def test_unknown_booking(self, client):
        response = await client.get(f"{API}/bookings/{uuid.uuid4()}")
        assert response.status_code == 404

    async def test_booking_unknown_show(self, client):
        response = await _book(client, uuid.uuid4(), "anna@example.com", [1])
        assert response.status_code == 404


class TestBookingValidation:
    """Malformed seat requests are rejected before anything is stored"""

    @pytest.mark.parametrize(
        "seats",
        [
            [0],
            [9],
            [70],
            [-1],
            [3, 3],
            [1, 2, 3, 4, 5, 6],
            [],
            ["3"],
            [2.5],
        ],
        ids=["blocked-front-left", "blocked-front-right", "out-of-range", "negative",
             "duplicate", "too-many", "empty", "string", "float"],
    )
    async def test_invalid_seats(self, client, show, seats):
        response = await _book(client, show.id, "anna@example.com", seats)

        assert response.status_code == 422
        assert response.json()["error"]["error_code"] == "VALIDATION_ERROR"

        seat_map = (await client.get(f"{API}/shows/{show.id}/seats")).json()
        assert seat_map["bookedSeats"] == []

    @pytest.mark.parametrize("name", ["", " ", "A"])
    async def test_name_too_short(self, client, show, name):
        response = await _book(client, show.id, "anna@example.com", [1], name=name)
        assert response.status_code == 422

    async def test_invalid_email(self, client, show):
        response = await _book(client, show.id, "not-an-email", [1])
        assert response.status_code == 422
        assert "email" in response.json()["error"]["details"]["field_errors"]

    async def test_modify_to_blocked_seat(self, client, show):
        created = await _book(client, show.id, "anna@example.com", [1])

        response = await client.patch(
            f"{API}/bookings/{created.json()['bookingId']}", json={"seats": [0, 1]}
        )

        assert response.status_code == 422
        booking = await client.get(f"{API}/bookings/{created.json()['bookingId']}")
        assert booking.json()["seats"] == [1]
