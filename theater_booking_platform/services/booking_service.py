"""
Booking service: seat allocation, conflict resolution and the booking lifecycle.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from uuid import UUID

from pydantic import EmailStr, TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
    Booking,
    BookingStatus,
    BookingHistory,
    BookingAction,
    SeatAssignment,
    Show,
    ACTIVE_STATUSES,
)
from ..config import get_settings
from ..cache import get_cache, CacheInvalidator
from ..utils.exceptions import (
    BookingAlreadyCancelledError,
    BookingNotFoundError,
    CapacityExceededError,
    DuplicateBookingError,
    EmailMismatchError,
    InvalidBookingStateError,
    SeatConflictError,
    ShowNotFoundError,
    StorageError,
    ValidationError,
)
from ..utils.logging_config import log_business_event
from .booking_state import HISTORY_ACTIONS, Transition, allowed_sources, next_status
from .notification_service import booking_payload
from .seat_service import SeatService
from .seat_topology import seat_labels, validate_seat_selection

logger = logging.getLogger(__name__)

VISITOR = "visitor"
ADMIN = "admin"

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class BookingService:
    """Service for creating, changing and transitioning bookings.

    Every write runs in one transaction that first locks the show row, so
    the read of the seat map and the insert of new assignments cannot be
    interleaved with another writer for the same show. The unique
    constraint on (show_id, seat_number) backs this up at commit time.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()
        self.cache = get_cache()
        self.seats = SeatService(session)

    async def create_booking(
        self,
        show_id: UUID,
        name: str,
        email: str,
        seats: List[int]
    ) -> Booking:
        """
        Create a confirmed booking for a set of seats.

        Args:
            show_id: Show to book
            name: Visitor name, at least two characters
            email: Visitor email, stored trimmed and lower-cased
            seats: Requested 0-based seat numbers

        Returns:
            The created booking with its seat assignments loaded

        Raises:
            ValidationError: When name, email or seats are malformed
            ShowNotFoundError: When the show does not exist
            DuplicateBookingError: When the email already holds an active booking
            SeatConflictError: When any requested seat is taken
            CapacityExceededError: When fewer seats remain than requested
            StorageError: When the store fails
        """
        name = (name or "").strip()
        if len(name) < 2:
            raise ValidationError(
                "Name must be at least 2 characters",
                field_errors={"name": ["Name must be at least 2 characters"]}
            )
        email = normalize_email(email or "")
        try:
            _email_adapter.validate_python(email)
        except PydanticValidationError:
            raise ValidationError(
                "Invalid email address",
                field_errors={"email": ["A valid email address is required"]}
            )
        requested = validate_seat_selection(seats)

        logger.info(f"Creating booking for show {show_id}, seats {requested}")

        try:
            show = await self._lock_show(show_id)
            validate_seat_selection(requested, total_seats=show.total_seats)

            if await self._has_active_booking(show_id, email):
                raise DuplicateBookingError(str(show_id))

            booked = await self.seats.booked_seats(show_id)
            conflicts = sorted(set(requested) & set(booked))
            if conflicts:
                raise SeatConflictError(conflicts, show_id=str(show_id))

            available = max(show.capacity - len(booked), 0)
            if len(requested) > available:
                raise CapacityExceededError(len(requested), available, show_id=str(show_id))

            booking = Booking(
                show_id=show_id,
                name=name,
                email=email,
                status=BookingStatus.CONFIRMED,
            )
            booking.seat_assignments = [
                SeatAssignment(show_id=show_id, seat_number=seat) for seat in requested
            ]
            booking.booking_history = [
                BookingHistory(
                    action=BookingAction.CREATED,
                    details=f"Booked seats {', '.join(seat_labels(requested))}",
                    performed_by=VISITOR,
                )
            ]
            self.session.add(booking)
            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            raise await self._integrity_conflict(e, show_id, requested)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage error creating booking for show {show_id}: {e}")
            raise StorageError("create_booking")
        except Exception:
            await self.session.rollback()
            raise

        available_after = available - len(requested)
        log_business_event(
            "booking_created",
            {"booking_id": str(booking.id), "show_id": str(show_id), "seat_count": len(requested)},
            actor=VISITOR,
        )
        await CacheInvalidator.invalidate_show_caches()
        self._queue_notifications(
            "booked",
            booking_payload(booking, show, requested, available_after),
        )

        logger.info(f"Booking {booking.id} created successfully")
        return await self._reload(booking.id)

    async def get_booking(self, booking_id: UUID) -> Booking:
        """
        Get a booking with its show and seats.

        Raises:
            BookingNotFoundError: When the booking does not exist
        """
        booking = await self._find_booking(booking_id)
        if not booking:
            raise BookingNotFoundError(str(booking_id))
        return booking

    async def update_booking_seats(
        self,
        booking_id: UUID,
        seats: List[int],
        performed_by: str = VISITOR
    ) -> Booking:
        """
        Replace the seats of an active booking.

        The booking's own seats do not count as conflicts, so a visitor can
        keep some seats and add or drop others. Submitting the current set
        again changes nothing.

        Args:
            booking_id: Booking to modify
            seats: New seat numbers
            performed_by: "visitor" or "admin"

        Returns:
            The booking with its new seats loaded

        Raises:
            ValidationError: When the seat set is malformed
            BookingNotFoundError: When the booking does not exist
            BookingAlreadyCancelledError: When the booking is cancelled
            SeatConflictError: When a new seat belongs to another booking
            StorageError: When the store fails
        """
        requested = validate_seat_selection(seats)

        try:
            booking = await self.get_booking(booking_id)
            if not booking.is_active:
                raise BookingAlreadyCancelledError(str(booking_id))

            show_id = booking.show_id
            show = await self._lock_show(show_id)
            validate_seat_selection(requested, total_seats=show.total_seats)

            # Re-read under the lock; another request may have cancelled or purged it
            booking = await self._find_booking(booking_id)
            if booking is None:
                raise BookingNotFoundError(str(booking_id))
            if not booking.is_active:
                raise BookingAlreadyCancelledError(str(booking_id))

            current = booking.seat_numbers
            if current == requested:
                await self.session.commit()
                return booking

            taken_by_others = await self.seats.booked_seats(show_id, exclude_booking_id=booking.id)
            conflicts = sorted(set(requested) & set(taken_by_others))
            if conflicts:
                raise SeatConflictError(conflicts, show_id=str(show_id))

            await self.session.execute(
                delete(SeatAssignment).where(SeatAssignment.booking_id == booking.id)
            )
            self.session.expire(booking, ["seat_assignments"])
            for seat in requested:
                self.session.add(SeatAssignment(booking_id=booking.id, show_id=show_id, seat_number=seat))
            self._add_history(
                booking.id,
                BookingAction.MODIFIED,
                f"Seats changed from {', '.join(seat_labels(current))} to {', '.join(seat_labels(requested))}",
                performed_by,
            )
            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            raise await self._integrity_conflict(e, show_id, requested, exclude_booking_id=booking_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage error updating seats of booking {booking_id}: {e}")
            raise StorageError("update_booking_seats")
        except Exception:
            await self.session.rollback()
            raise

        log_business_event(
            "booking_modified",
            {"booking_id": str(booking_id), "show_id": str(show_id), "seat_count": len(requested)},
            actor=performed_by,
        )
        await CacheInvalidator.invalidate_show_caches()

        updated = await self._reload(booking_id)
        self._queue_notifications("modified", booking_payload(updated, show, requested))
        return updated

    async def cancel_booking(
        self,
        booking_id: UUID,
        email: Optional[str] = None,
        performed_by: str = VISITOR
    ) -> Booking:
        """
        Cancel a booking and release its seats.

        Visitors prove ownership with the booking email; staff skip that check.

        Args:
            booking_id: Booking to cancel
            email: Email the booking was made with (visitors only)
            performed_by: "visitor" or "admin"

        Returns:
            The cancelled booking

        Raises:
            BookingNotFoundError: When the booking does not exist
            EmailMismatchError: When the email does not match
            BookingAlreadyCancelledError: When the booking is already cancelled
            StorageError: When the store fails
        """
        try:
            booking = await self.get_booking(booking_id)

            if performed_by != ADMIN:
                if email is None or normalize_email(email) != normalize_email(booking.email):
                    raise EmailMismatchError(str(booking_id))

            show = booking.show
            await self._lock_show(booking.show_id)
            booking = await self._find_booking(booking_id)
            if booking is None:
                raise BookingNotFoundError(str(booking_id))
            booking.status = next_status(booking, Transition.CANCEL)

            released = booking.seat_numbers
            await self.session.execute(
                delete(SeatAssignment).where(SeatAssignment.booking_id == booking.id)
            )
            self.session.expire(booking, ["seat_assignments"])
            booking.cancelled_at = datetime.now(timezone.utc)
            self._add_history(
                booking.id,
                HISTORY_ACTIONS[Transition.CANCEL],
                f"Released seats {', '.join(seat_labels(released))}",
                performed_by,
            )
            await self.session.commit()

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage error cancelling booking {booking_id}: {e}")
            raise StorageError("cancel_booking")
        except Exception:
            await self.session.rollback()
            raise

        log_business_event(
            "booking_cancelled",
            {"booking_id": str(booking_id), "show_id": str(show.id), "seat_count": len(released)},
            actor=performed_by,
        )
        await CacheInvalidator.invalidate_show_caches()

        available_after = await self.seats.availability(show.id)
        self._queue_notifications(
            "cancelled",
            booking_payload(booking, show, released, available_after),
        )
        return await self._reload(booking_id)

    async def check_in_booking(self, booking_id: UUID) -> Booking:
        """
        Mark a confirmed booking as checked in at the door.

        Raises:
            InvalidBookingStateError: When the booking is missing or not confirmed
        """
        return await self._apply_admin_transition(booking_id, Transition.CHECK_IN)

    async def check_out_booking(self, booking_id: UUID) -> Booking:
        """
        Undo a check-in.

        Raises:
            InvalidBookingStateError: When the booking is missing or not checked in
        """
        return await self._apply_admin_transition(booking_id, Transition.CHECK_OUT)

    async def list_active_bookings(self, show_id: Optional[UUID] = None) -> List[Booking]:
        """
        Non-cancelled bookings, newest first.

        Args:
            show_id: Only bookings of this show

        Raises:
            ShowNotFoundError: When filtering by an unknown show
        """
        query = (
            select(Booking)
            .options(selectinload(Booking.show), selectinload(Booking.seat_assignments))
            .where(Booking.status.in_(ACTIVE_STATUSES))
            .order_by(Booking.created_at.desc())
        )
        if show_id is not None:
            await self.seats.get_show(show_id)
            query = query.where(Booking.show_id == show_id)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_check_in_history(self, show_id: Optional[UUID] = None, limit: int = 100) -> List[Booking]:
        """Checked-in bookings, most recent check-in first."""
        query = (
            select(Booking)
            .options(selectinload(Booking.show), selectinload(Booking.seat_assignments))
            .where(
                Booking.status == BookingStatus.CHECKED_IN,
                Booking.checked_in_at.is_not(None)
            )
            .order_by(Booking.checked_in_at.desc())
            .limit(limit)
        )
        if show_id is not None:
            query = query.where(Booking.show_id == show_id)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_booking_history(self, booking_id: UUID) -> List[BookingHistory]:
        """
        Get the complete history for a booking.

        Args:
            booking_id: ID of the booking

        Returns:
            List of booking history entries, oldest first
        """
        await self.get_booking(booking_id)
        result = await self.session.execute(
            select(BookingHistory)
            .where(BookingHistory.booking_id == booking_id)
            .order_by(BookingHistory.created_at.asc())
        )
        return list(result.scalars().all())

    # Private helper methods

    async def _apply_admin_transition(self, booking_id: UUID, transition: Transition) -> Booking:
        required = next(iter(allowed_sources(transition))).value
        try:
            result = await self.session.execute(
                select(Booking).where(Booking.id == booking_id).with_for_update()
            )
            booking = result.scalar_one_or_none()
            if not booking:
                raise InvalidBookingStateError(str(booking_id), required_state=required)

            booking.status = next_status(booking, transition)
            booking.checked_in_at = (
                datetime.now(timezone.utc) if transition is Transition.CHECK_IN else None
            )
            self._add_history(booking.id, HISTORY_ACTIONS[transition], None, ADMIN)
            await self.session.commit()

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage error during {transition.value} of booking {booking_id}: {e}")
            raise StorageError(transition.value)
        except Exception:
            await self.session.rollback()
            raise

        log_business_event(
            transition.value,
            {"booking_id": str(booking_id), "show_id": str(booking.show_id)},
            actor=ADMIN,
        )
        return await self._reload(booking_id)

    async def _reload(self, booking_id: UUID) -> Booking:
        """Load a booking after a write and end the read transaction."""
        booking = await self.get_booking(booking_id)
        # SQLite holds its write lock for any open transaction
        await self.session.commit()
        return booking

    async def _lock_show(self, show_id: UUID) -> Show:
        """Load the show and hold its row lock until the transaction ends."""
        result = await self.session.execute(
            select(Show).where(Show.id == show_id).with_for_update()
        )
        show = result.scalar_one_or_none()
        if not show:
            raise ShowNotFoundError(str(show_id))
        return show

    async def _has_active_booking(self, show_id: UUID, email: str) -> bool:
        result = await self.session.execute(
            select(Booking.id)
            .where(
                Booking.show_id == show_id,
                Booking.email == email,
                Booking.status.in_(ACTIVE_STATUSES)
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def _find_booking(self, booking_id: UUID) -> Optional[Booking]:
        result = await self.session.execute(
            select(Booking)
            .options(selectinload(Booking.show), selectinload(Booking.seat_assignments))
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _integrity_conflict(
        self,
        error: IntegrityError,
        show_id: UUID,
        requested: List[int],
        exclude_booking_id: Optional[UUID] = None
    ) -> Exception:
        """Translate a constraint violation from a concurrent writer."""
        message = str(error.orig)
        if "uq_bookings_active_show_email" in message or "bookings.show_id, bookings.email" in message:
            logger.info(f"Concurrent duplicate booking rejected for show {show_id}")
            return DuplicateBookingError(str(show_id))

        if "seat_assignments" in message:
            booked = await self.seats.booked_seats(show_id, exclude_booking_id=exclude_booking_id)
            await self.session.rollback()
            conflicts = sorted(set(requested) & set(booked)) or requested
            logger.info(f"Concurrent seat conflict on show {show_id}: {conflicts}")
            return SeatConflictError(conflicts, show_id=str(show_id))

        logger.error(f"Integrity error on show {show_id}: {error}")
        return StorageError("write_booking")

    def _add_history(
        self,
        booking_id: UUID,
        action: BookingAction,
        details: Optional[str],
        performed_by: str
    ) -> None:
        """Create a booking history entry."""
        self.session.add(
            BookingHistory(
                booking_id=booking_id,
                action=action,
                details=details,
                performed_by=performed_by,
            )
        )

    def _queue_notifications(self, action: str, payload: Dict[str, Any]) -> None:
        """Hand the visitor email and the chat update to Celery."""
        if not self.settings.enable_notifications:
            return

        try:
            from ..tasks.notification_tasks import (
                send_booking_confirmation_task,
                send_booking_cancellation_task,
                send_booking_modification_task,
                send_seat_update_task,
            )

            if action == "booked":
                send_booking_confirmation_task.delay(payload)
            elif action == "cancelled":
                send_booking_cancellation_task.delay(payload)
            else:
                send_booking_modification_task.delay(payload)

            if action in ("booked", "cancelled"):
                send_seat_update_task.delay(
                    payload["show_label"],
                    len(payload["seats"]),
                    payload["available_seats"],
                    action,
                )
            logger.info(f"Notifications queued for booking {payload['booking_id']} ({action})")
        except Exception as e:
            logger.warning(f"Failed to queue notifications for booking {payload['booking_id']}: {e}")
