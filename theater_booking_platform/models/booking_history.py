"""
BookingHistory model for tracking booking audit trail.
"""

import enum
import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .booking import Booking


class BookingAction(enum.Enum):
    """Enumeration for booking actions."""
    CREATED = "created"
    MODIFIED = "modified"
    CANCELLED = "cancelled"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


class BookingHistory(Base):
    """BookingHistory model for tracking booking audit trail."""

    __tablename__ = "booking_history"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    action: Mapped[BookingAction] = mapped_column(
        Enum(BookingAction),
        nullable=False,
        index=True
    )

    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # "visitor" or "admin"
    performed_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Relationships
    booking: Mapped["Booking"] = relationship("Booking", back_populates="booking_history")

    def __repr__(self) -> str:
        """String representation of the booking history entry."""
        return (
            f"<BookingHistory(id={self.id}, booking_id={self.booking_id}, "
            f"action={self.action.value}, created_at={self.created_at})>"
        )
