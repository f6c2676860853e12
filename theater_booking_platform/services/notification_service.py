"""
Notification service for visitor emails and the staff chat webhook.

Notifications run on Celery workers after the booking write has committed.
They work from a plain payload captured at write time (seat numbers are gone
from the store once a booking is cancelled), and a failure here never
changes booking state.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Dict, Optional

import httpx

from ..config import Settings, get_settings
from .seat_topology import seat_labels

logger = logging.getLogger(__name__)


def booking_payload(booking, show, seats, available_seats: Optional[int] = None) -> Dict[str, Any]:
    """
    Snapshot of a booking for the notification tasks.

    Args:
        booking: Booking the notification is about
        show: Show the booking belongs to
        seats: Seat numbers relevant to the notification
        available_seats: Seats left for the show after the write

    Returns:
        JSON-serializable dict
    """
    return {
        "booking_id": str(booking.id),
        "name": booking.name,
        "email": booking.email,
        "show_id": str(show.id),
        "show_title": show.title,
        "show_date": show.show_date.isoformat(),
        "show_time": show.show_time,
        "show_label": show.label,
        "seats": sorted(seats),
        "available_seats": available_seats,
    }


class NotificationService:
    """Service for handling email and chat notifications."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def send_booking_confirmation(self, payload: Dict[str, Any]) -> bool:
        """
        Send booking confirmation email to the visitor.

        Args:
            payload: Booking snapshot from ``booking_payload``

        Returns:
            bool: True if email was sent successfully
        """
        template_data = self._template_data(payload)
        subject = f"Your reservation for {payload['show_title']}"
        success = await self._send_email(
            to_email=payload["email"],
            subject=subject,
            html_content=self._render_confirmation_html(template_data),
            text_content=self._render_confirmation_text(template_data),
        )

        if success:
            logger.info(f"Booking confirmation sent for booking {payload['booking_id']}")
        return success

    async def send_booking_cancellation(self, payload: Dict[str, Any]) -> bool:
        """
        Send cancellation confirmation email to the visitor.

        Args:
            payload: Booking snapshot taken before the seats were released

        Returns:
            bool: True if email was sent successfully
        """
        template_data = self._template_data(payload)
        subject = f"Cancellation confirmed - {payload['show_title']}"
        success = await self._send_email(
            to_email=payload["email"],
            subject=subject,
            html_content=self._render_cancellation_html(template_data),
            text_content=self._render_cancellation_text(template_data),
        )

        if success:
            logger.info(f"Booking cancellation sent for booking {payload['booking_id']}")
        return success

    async def send_booking_modification(self, payload: Dict[str, Any]) -> bool:
        """Tell the visitor which seats their booking now holds."""
        template_data = self._template_data(payload)
        subject = f"Your reservation was updated - {payload['show_title']}"
        text_content = (
            f"Hello {template_data['name']},\n\n"
            f"your reservation for {template_data['show_title']} on {template_data['date']} "
            f"at {template_data['time']} now holds these seats: {template_data['seats']}.\n\n"
            f"View your booking: {template_data['booking_url']}\n\n"
            f"{template_data['theater_name']}\n"
        )
        html_content = "<p>" + text_content.replace("\n\n", "</p><p>").replace("\n", "<br>") + "</p>"
        return await self._send_email(payload["email"], subject, html_content, text_content)

    async def send_seat_update(
        self,
        show_label: str,
        seat_count: int,
        available_seat_count: int,
        action: str
    ) -> bool:
        """
        Post a seat update to the staff chat webhook.

        Args:
            show_label: Human label of the show
            seat_count: Seats booked or released by the write
            available_seat_count: Seats left for the show
            action: "booked" or "cancelled"

        Returns:
            bool: True if the webhook accepted the message
        """
        if not self.settings.chat_webhook_url:
            return False

        seat_heading = "Booked seats" if action == "booked" else "Cancelled seats"
        content = (
            f"Show: {show_label}\n"
            f"{seat_heading}: {seat_count}\n"
            f"Available seats: {available_seat_count}"
        )

        try:
            async with httpx.AsyncClient(timeout=self.settings.chat_webhook_timeout) as client:
                response = await client.post(self.settings.chat_webhook_url, json={"content": content})
            if response.is_error:
                logger.error(
                    f"Chat webhook rejected seat update: {response.status_code} {response.text}"
                )
                return False
            return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send chat webhook notification: {e}")
            return False

    def _template_data(self, payload: Dict[str, Any]) -> Dict[str, str]:
        base_url = self.settings.public_base_url.rstrip("/")
        return {
            "name": payload["name"],
            "show_title": payload["show_title"],
            "date": payload["show_date"],
            "time": payload["show_time"],
            "seats": ", ".join(seat_labels(payload["seats"])),
            "booking_id": payload["booking_id"],
            "booking_url": f"{base_url}/booking/view/{payload['booking_id']}",
            "theater_name": self.settings.theater_name,
        }

    def _render_confirmation_text(self, data: Dict[str, str]) -> str:
        return f"""Hello {data['name']},

thank you for your reservation!

YOUR BOOKING:
Show: {data['show_title']}
Date: {data['date']}
Time: {data['time']}
Seats: {data['seats']}

Show this QR code page at the entrance:
{data['booking_url']}

If you cannot make it, please cancel your booking so others can take your seats.

{data['theater_name']}
"""

    def _render_confirmation_html(self, data: Dict[str, str]) -> str:
        return f"""
        <html>
        <body>
            <h2>Thank you for your reservation, {data['name']}!</h2>
            <table>
                <tr><td><strong>Show:</strong></td><td>{data['show_title']}</td></tr>
                <tr><td><strong>Date:</strong></td><td>{data['date']}</td></tr>
                <tr><td><strong>Time:</strong></td><td>{data['time']}</td></tr>
                <tr><td><strong>Seats:</strong></td><td>{data['seats']}</td></tr>
            </table>
            <p><a href="{data['booking_url']}">View your booking and ticket</a></p>
            <p>{data['theater_name']}</p>
        </body>
        </html>
        """

    def _render_cancellation_text(self, data: Dict[str, str]) -> str:
        return f"""Hello {data['name']},

your reservation has been cancelled.

CANCELLED BOOKING:
Date: {data['date']}
Time: {data['time']}
Seats: {data['seats']}

The seats have been released for other visitors.

{data['theater_name']}
"""

    def _render_cancellation_html(self, data: Dict[str, str]) -> str:
        return f"""
        <html>
        <body>
            <h2>Your reservation has been cancelled</h2>
            <p>Hello {data['name']}, the following seats have been released:</p>
            <table>
                <tr><td><strong>Date:</strong></td><td>{data['date']}</td></tr>
                <tr><td><strong>Time:</strong></td><td>{data['time']}</td></tr>
                <tr><td><strong>Seats:</strong></td><td>{data['seats']}</td></tr>
            </table>
            <p>{data['theater_name']}</p>
        </body>
        </html>
        """

    async def _send_email(self, to_email: str, subject: str, html_content: str, text_content: str) -> bool:
        """
        Send email using SMTP.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email content
            text_content: Plain text email content

        Returns:
            bool: True if email was sent successfully
        """
        if not self.settings.smtp_server:
            logger.warning("Email configuration not available, skipping email send")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.settings.theater_name, self.settings.from_email))
        msg["To"] = to_email
        if self.settings.reply_to_email:
            msg["Reply-To"] = self.settings.reply_to_email

        msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        try:
            with smtplib.SMTP(self.settings.smtp_server, self.settings.smtp_port) as server:
                if self.settings.smtp_use_tls:
                    server.starttls()
                if self.settings.smtp_username:
                    server.login(self.settings.smtp_username, self.settings.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"Email sent successfully to {to_email}")
        return True
