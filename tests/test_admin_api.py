"""
HTTP tests for the staff surface: admin session, door check-in, booking
administration and the show catalog.
"""

import uuid
from datetime import date, timedelta


API = "/api/v1"


async def _book(client, show_id, email="anna@example.com", seats=(1, 2)):
    response = await client.post(
        f"{API}/bookings",
        json={"showId": str(show_id), "name": "Anna Weber", "email": email, "seats": list(seats)},
    )
    return response.json()["bookingId"]


class TestAdminSession:
    """Password login and the token gate"""

    async def test_wrong_password(self, client):
        response = await client.post(f"{API}/admin/login", json={"password": "let-me-in"})

        assert response.status_code == 401
        assert response.json()["error"]["error_code"] == "UNAUTHORIZED"
        assert "admin-token" not in response.cookies

    async def test_login_sets_cookie(self, client, admin_password):
        response = await client.post(f"{API}/admin/login", json={"password": admin_password})

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        assert response.cookies.get("admin-token") == response.json()["access_token"]

    async def test_cookie_grants_access(self, client, admin_password):
        login = await client.post(f"{API}/admin/login", json={"password": admin_password})
        token = login.json()["access_token"]

        response = await client.get(f"{API}/admin/bookings", headers={"Cookie": f"admin-token={token}"})
        assert response.status_code == 200

    async def test_requires_token(self, client, show):
        for method, path in [
            ("GET", "/admin/bookings"),
            ("GET", "/admin/history"),
            ("POST", "/admin/checkin"),
            ("DELETE", "/admin/bookings/purge"),
            ("GET", "/admin/shows"),
        ]:
            response = await client.request(method, f"{API}{path}", json={"bookingId": str(uuid.uuid4())})
            assert response.status_code == 401, path

    async def test_rejects_forged_token(self, client):
        response = await client.get(
            f"{API}/admin/bookings", headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 401


class TestDoorCheckIn:
    """Check-in and check-out at the door"""

    async def test_check_in_and_out(self, client, show, admin_headers):
        booking_id = await _book(client, show.id)

        checked_in = await client.post(
            f"{API}/admin/checkin", json={"bookingId": booking_id}, headers=admin_headers
        )
        assert checked_in.status_code == 200
        assert checked_in.json()["status"] == "checked_in"
        assert checked_in.json()["checkedInAt"] is not None

        again = await client.post(
            f"{API}/admin/checkin", json={"bookingId": booking_id}, headers=admin_headers
        )
        assert again.status_code == 404
        assert again.json()["error"]["error_code"] == "INVALID_BOOKING_STATE"

        checked_out = await client.post(
            f"{API}/admin/checkout", json={"bookingId": booking_id}, headers=admin_headers
        )
        assert checked_out.status_code == 200
        assert checked_out.json()["status"] == "confirmed"
        assert checked_out.json()["checkedInAt"] is None

    async def test_check_out_without_check_in(self, client, show, admin_headers):
        booking_id = await _book(client, show.id)

        response = await client.post(
            f"{API}/admin/checkout", json={"bookingId": booking_id}, headers=admin_headers
        )
        assert response.status_code == 404

    async def test_check_in_unknown_booking(self, client, admin_headers):
        response = await client.post(
            f"{API}/admin/checkin", json={"bookingId": str(uuid.uuid4())}, headers=admin_headers
        )
        assert response.status_code == 404

    async def test_checked_in_seats_stay_taken(self, client, show, admin_headers):
        booking_id = await _book(client, show.id, seats=[5, 6])
        await client.post(f"{API}/admin/checkin", json={"bookingId": booking_id}, headers=admin_headers)

        seats = (await client.get(f"{API}/shows/{show.id}/seats")).json()
        assert seats["bookedSeats"] == [5, 6]

    async def test_history(self, client, make_show, admin_headers):
        show = await make_show()
        other = await make_show(show_date=date.today() + timedelta(days=8), display_label="Saturday 19:30")
        first = await _book(client, show.id, "anna@example.com")
        second = await _book(client, other.id, "ben@example.com")
        await _book(client, show.id, "carla@example.com", seats=[3])
        for booking_id in (first, second):
            await client.post(f"{API}/admin/checkin", json={"bookingId": booking_id}, headers=admin_headers)

        everything = (await client.get(f"{API}/admin/history", headers=admin_headers)).json()
        assert everything["total"] == 2
        assert {b["id"] for b in everything["bookings"]} == {first, second}

        one_show = (
            await client.get(f"{API}/admin/history", params={"showId": str(show.id)}, headers=admin_headers)
        ).json()
        assert [b["id"] for b in one_show["bookings"]] == [first]


class TestBookingAdministration:
    """Listing, admin cancellation, audit trail and purge"""

    async def test_list_bookings(self, client, make_show, admin_headers):
        show = await make_show()
        other = await make_show(show_date=date.today() + timedelta(days=8), display_label="Saturday 19:30")
        await _book(client, show.id, "anna@example.com")
        await _book(client, other.id, "ben@example.com")
        cancelled = await _book(client, show.id, "carla@example.com", seats=[3])
        await client.delete(f"{API}/admin/bookings/{cancelled}", headers=admin_headers)

        everything = (await client.get(f"{API}/admin/bookings", headers=admin_headers)).json()
        assert everything["total"] == 2

        one_show = (
            await client.get(f"{API}/admin/bookings", params={"showId": str(show.id)}, headers=admin_headers)
        ).json()
        assert one_show["total"] == 1
        assert one_show["bookings"][0]["email"] == "anna@example.com"

    async def test_admin_cancel(self, client, show, admin_headers):
        booking_id = await _book(client, show.id)

        response = await client.delete(f"{API}/admin/bookings/{booking_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["seats"] == []
        seats = (await client.get(f"{API}/shows/{show.id}/seats")).json()
        assert seats["availableSeats"] == 68

    async def test_booking_history(self, client, show, admin_headers):
        booking_id = await _book(client, show.id)
        await client.patch(f"{API}/bookings/{booking_id}", json={"seats": [1, 2, 3]})
        await client.post(f"{API}/admin/checkin", json={"bookingId": booking_id}, headers=admin_headers)

        response = await client.get(f"{API}/admin/bookings/{booking_id}/history", headers=admin_headers)

        assert response.status_code == 200
        assert [entry["action"] for entry in response.json()] == ["created", "modified", "checked_in"]
        assert response.json()[-1]["performedBy"] == "admin"

    async def test_purge(self, client, make_show, admin_headers):
        old = await make_show(show_date=date.today() - timedelta(days=30), display_label="Old")
        upcoming = await make_show(display_label="Upcoming")
        await _book(client, old.id, "anna@example.com")
        await _book(client, upcoming.id, "anna@example.com")

        response = await client.delete(f"{API}/admin/bookings/purge", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["deletedBookings"] == 1
        assert body["deletedSeats"] == 2
        assert [s["displayLabel"] for s in body["affectedShows"]] == ["Old"]

        remaining = (await client.get(f"{API}/admin/bookings", headers=admin_headers)).json()
        assert remaining["total"] == 1


class TestShowAdministration:
    """Show catalog CRUD"""

    async def test_create_and_fetch(self, client, admin_headers):
        payload = {
            "title": "Die Physiker",
            "date": (date.today() + timedelta(days=21)).isoformat(),
            "time": "20:00",
            "displayLabel": "Premiere",
        }

        created = await client.post(f"{API}/admin/shows", json=payload, headers=admin_headers)

        assert created.status_code == 201
        body = created.json()
        assert body["totalSeats"] == 70
        assert body["capacity"] == 68

        fetched = await client.get(f"{API}/admin/shows/{body['id']}", headers=admin_headers)
        assert fetched.json()["title"] == "Die Physiker"

        public = (await client.get(f"{API}/shows")).json()["shows"]
        assert [s["displayLabel"] for s in public] == ["Premiere"]

    async def test_invalid_time(self, client, admin_headers):
        payload = {
            "title": "Die Physiker",
            "date": date.today().isoformat(),
            "time": "25:00",
            "displayLabel": "Late",
        }
        response = await client.post(f"{API}/admin/shows", json=payload, headers=admin_headers)
        assert response.status_code == 422

    async def test_update_blocked_by_bookings(self, client, show, admin_headers):
        await _book(client, show.id)

        response = await client.put(
            f"{API}/admin/shows/{show.id}", json={"time": "20:00"}, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["error"]["error_code"] == "SHOW_HAS_BOOKINGS"

    async def test_update_and_delete(self, client, show, admin_headers):
        updated = await client.put(
            f"{API}/admin/shows/{show.id}", json={"totalSeats": 40}, headers=admin_headers
        )
        assert updated.status_code == 200
        assert updated.json()["capacity"] == 38

        deleted = await client.delete(f"{API}/admin/shows/{show.id}", headers=admin_headers)
        assert deleted.status_code == 204

        missing = await client.get(f"{API}/admin/shows/{show.id}", headers=admin_headers)
        assert missing.status_code == 404

    async def test_list_shows(self, client, show, admin_headers):
        await _book(client, show.id)

        response = await client.get(f"{API}/admin/shows", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["shows"][0]["activeBookings"] == 1
