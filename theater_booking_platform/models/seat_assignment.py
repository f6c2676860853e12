"""
SeatAssignment model binding one seat number of a show to a booking.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .booking import Booking


class SeatAssignment(Base):
    """One physically occupied seat, owned by exactly one active booking."""

    __tablename__ = "seat_assignments"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    show_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("shows.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    booking: Mapped["Booking"] = relationship("Booking", back_populates="seat_assignments")

    # Rows only exist for active bookings, so this is the seat exclusivity guard
    __table_args__ = (
        UniqueConstraint(
            "show_id", "seat_number",
            name="uq_seat_assignments_show_seat"
        ),
        UniqueConstraint(
            "booking_id", "seat_number",
            name="uq_seat_assignments_booking_seat"
        ),
        CheckConstraint("seat_number >= 0", name="ck_seat_assignments_seat_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of the seat assignment."""
        return (
            f"<SeatAssignment(id={self.id}, booking_id={self.booking_id}, "
            f"show_id={self.show_id}, seat={self.seat_number})>"
        )
