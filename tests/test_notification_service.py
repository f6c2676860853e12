"""
Tests for notification payloads, the chat webhook and task queuing.
"""

import json
from datetime import date

import httpx

from theater_booking_platform.config import get_settings
from theater_booking_platform.models import Booking, Show
from theater_booking_platform.services import notification_service
from theater_booking_platform.services.booking_service import BookingService
from theater_booking_platform.services.notification_service import NotificationService, booking_payload
from theater_booking_platform.tasks import notification_tasks


def _settings(**overrides):
    return get_settings().model_copy(update=overrides)


def _payload(**overrides):
    show = Show(
        title="Der zerbrochne Krug",
        show_date=date(2026, 11, 6),
        show_time="19:30",
        display_label="Friday 19:30",
        total_seats=70,
    )
    booking = Booking(name="Anna Weber", email="anna@example.com")
    payload = booking_payload(booking, show, [13, 1, 2], available_seats=65)
    payload.update(overrides)
    return payload


class TestBookingPayload:
    """Snapshot handed to the notification tasks"""

    def test_payload_is_json_ready(self):
        payload = _payload()

        assert payload["seats"] == [1, 2, 13]
        assert payload["show_label"] == "Friday 19:30"
        assert payload["show_date"] == "2026-11-06"
        assert payload["available_seats"] == 65
        json.dumps(payload)

    def test_template_uses_seat_labels(self):
        service = NotificationService(_settings(public_base_url="https://tickets.example.org/"))
        data = service._template_data(_payload(booking_id="abc"))

        assert data["seats"] == "A2, A3, B4"
        assert data["booking_url"] == "https://tickets.example.org/booking/view/abc"


class TestDelivery:
    """Email and chat delivery outcomes"""

    async def test_email_skipped_without_smtp(self):
        service = NotificationService(_settings(smtp_server=None))
        assert await service.send_booking_confirmation(_payload()) is False

    async def test_seat_update_skipped_without_webhook(self):
        service = NotificationService(_settings(chat_webhook_url=None))
        assert await service.send_seat_update("Friday 19:30", 2, 66, "booked") is False

    async def test_seat_update_posts_message(self, monkeypatch):
        received = []

        def handler(request):
            received.append(json.loads(request.content))
            return httpx.Response(204)

        real_client = httpx.AsyncClient
        monkeypatch.setattr(
            notification_service.httpx,
            "AsyncClient",
            lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
        )

        service = NotificationService(_settings(chat_webhook_url="https://chat.example.org/hook"))
        assert await service.send_seat_update("Friday 19:30", 3, 65, "cancelled") is True
        assert received == [
            {"content": "Show: Friday 19:30\nCancelled seats: 3\nAvailable seats: 65"}
        ]

    async def test_webhook_error_reported(self, monkeypatch):
        real_client = httpx.AsyncClient
        monkeypatch.setattr(
            notification_service.httpx,
            "AsyncClient",
            lambda **kwargs: real_client(
                transport=httpx.MockTransport(lambda request: httpx.Response(500, text="down")),
                **kwargs,
            ),
        )

        service = NotificationService(_settings(chat_webhook_url="https://chat.example.org/hook"))
        assert await service.send_seat_update("Friday 19:30", 1, 67, "booked") is False


class TestQueuing:
    """Booking writes hand notifications to Celery"""

    def _capture(self, monkeypatch):
        calls = []
        for name in (
            "send_booking_confirmation_task",
            "send_booking_cancellation_task",
            "send_booking_modification_task",
            "send_seat_update_task",
        ):
            task = getattr(notification_tasks, name)
            monkeypatch.setattr(task, "delay", lambda *args, _name=name: calls.append((_name, args)))
        return calls

    async def test_booking_queues_email_and_chat(self, db_session, show, monkeypatch):
        calls = self._capture(monkeypatch)
        service = BookingService(db_session)
        monkeypatch.setattr(service, "settings", _settings(enable_notifications=True))

        await service.create_booking(show.id, "Anna Weber", "anna@example.com", [1, 2])

        assert [name for name, _ in calls] == ["send_booking_confirmation_task", "send_seat_update_task"]
        assert calls[1][1] == ("Friday 19:30", 2, 66, "booked")

    async def test_modification_skips_chat(self, db_session, show, monkeypatch):
        service = BookingService(db_session)
        booking = await service.create_booking(show.id, "Anna Weber", "anna@example.com", [1])

        calls = self._capture(monkeypatch)
        monkeypatch.setattr(service, "settings", _settings(enable_notifications=True))
        await service.update_booking_seats(booking.id, [1, 2])

        assert [name for name, _ in calls] == ["send_booking_modification_task"]
        assert calls[0][1][0]["seats"] == [1, 2]

    async def test_disabled_queues_nothing(self, db_session, show, monkeypatch):
        calls = self._capture(monkeypatch)
        await BookingService(db_session).create_booking(show.id, "Anna Weber", "anna@example.com", [1])
        assert calls == []
