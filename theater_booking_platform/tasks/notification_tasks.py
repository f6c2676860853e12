"""
Celery tasks for visitor emails and chat seat updates.

Tasks receive a snapshot of the booking rather than its id, because a
cancelled booking no longer has seats in the store when the task runs.
"""

import asyncio
import logging
from typing import Any, Dict

from .celery_app import celery_app
from ..services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _run(coro):
    """Run a coroutine on a fresh event loop inside the worker."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(bind=True, name="send_booking_confirmation_task")
def send_booking_confirmation_task(self, payload: Dict[str, Any]):
    """
    Task to send the booking confirmation email.

    Args:
        payload: Booking snapshot built by ``booking_payload``
    """
    booking_id = payload["booking_id"]

    async def _send_confirmation():
        try:
            logger.info(f"Sending booking confirmation for {booking_id}")
            success = await NotificationService().send_booking_confirmation(payload)
            if success:
                logger.info(f"Booking confirmation sent successfully for {booking_id}")
                return {"booking_id": booking_id, "status": "sent"}
            logger.error(f"Failed to send booking confirmation for {booking_id}")
            return {"booking_id": booking_id, "status": "failed"}
        except Exception as e:
            logger.error(f"Error in booking confirmation task: {e}")
            return {"booking_id": booking_id, "status": "error", "error": str(e)}

    return _run(_send_confirmation())


@celery_app.task(bind=True, name="send_booking_cancellation_task")
def send_booking_cancellation_task(self, payload: Dict[str, Any]):
    """
    Task to send the booking cancellation email.

    Args:
        payload: Booking snapshot taken before the seats were released
    """
    booking_id = payload["booking_id"]

    async def _send_cancellation():
        try:
            logger.info(f"Sending booking cancellation for {booking_id}")
            success = await NotificationService().send_booking_cancellation(payload)
            if success:
                logger.info(f"Booking cancellation sent successfully for {booking_id}")
                return {"booking_id": booking_id, "status": "sent"}
            logger.error(f"Failed to send booking cancellation for {booking_id}")
            return {"booking_id": booking_id, "status": "failed"}
        except Exception as e:
            logger.error(f"Error in booking cancellation task: {e}")
            return {"booking_id": booking_id, "status": "error", "error": str(e)}

    return _run(_send_cancellation())


@celery_app.task(bind=True, name="send_booking_modification_task")
def send_booking_modification_task(self, payload: Dict[str, Any]):
    """Task to send the email listing the new seats of a booking."""
    booking_id = payload["booking_id"]

    async def _send_modification():
        try:
            success = await NotificationService().send_booking_modification(payload)
            return {"booking_id": booking_id, "status": "sent" if success else "failed"}
        except Exception as e:
            logger.error(f"Error in booking modification task: {e}")
            return {"booking_id": booking_id, "status": "error", "error": str(e)}

    return _run(_send_modification())


@celery_app.task(bind=True, name="send_seat_update_task")
def send_seat_update_task(
    self,
    show_label: str,
    seat_count: int,
    available_seat_count: int,
    action: str
):
    """
    Task to post a seat update to the staff chat.

    Args:
        show_label: Human label of the show
        seat_count: Seats booked or released
        available_seat_count: Seats still free afterwards
        action: "booked" or "cancelled"
    """

    async def _send_update():
        try:
            success = await NotificationService().send_seat_update(
                show_label, seat_count, available_seat_count, action
            )
            return {"show": show_label, "status": "sent" if success else "skipped"}
        except Exception as e:
            logger.error(f"Error in seat update task: {e}")
            return {"show": show_label, "status": "error", "error": str(e)}

    return _run(_send_update())
