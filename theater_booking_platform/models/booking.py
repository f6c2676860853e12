"""
Booking model for seat reservations.
"""

import enum
import uuid
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .show import Show
    from .seat_assignment import SeatAssignment
    from .booking_history import BookingHistory


class BookingStatus(enum.Enum):
    """Enumeration for booking status."""
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)


class Booking(Base):
    """One visitor's reservation of 1-5 seats for one show."""

    __tablename__ = "bookings"

    show_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("shows.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Visitor details (no accounts; email doubles as ownership proof)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus),
        default=BookingStatus.CONFIRMED,
        nullable=False,
        index=True
    )

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    # Relationships
    show: Mapped["Show"] = relationship("Show", back_populates="bookings")

    seat_assignments: Mapped[List["SeatAssignment"]] = relationship(
        "SeatAssignment",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="SeatAssignment.seat_number"
    )

    booking_history: Mapped[List["BookingHistory"]] = relationship(
        "BookingHistory",
        back_populates="booking",
        cascade="all, delete-orphan"
    )

    # One active booking per email and show, enforced by the store as well
    __table_args__ = (
        Index(
            "uq_bookings_active_show_email",
            "show_id",
            "email",
            unique=True,
            postgresql_where=text("status != 'CANCELLED'"),
            sqlite_where=text("status != 'CANCELLED'"),
        ),
    )

    @property
    def is_active(self) -> bool:
        """Check if the booking still holds seats."""
        return self.status in ACTIVE_STATUSES

    @property
    def seat_numbers(self) -> List[int]:
        """Seat numbers currently held, ascending."""
        return sorted(sa.seat_number for sa in self.seat_assignments)

    def __repr__(self) -> str:
        """String representation of the booking."""
        return (
            f"<Booking(id={self.id}, show_id={self.show_id}, "
            f"email='{self.email}', status={self.status.value})>"
        )
