"""
Show model for scheduled performances and their seat range.
"""

from datetime import date
from typing import List, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from ..services.seat_topology import assignable_capacity

if TYPE_CHECKING:
    from .booking import Booking


class Show(Base):
    """One scheduled theater performance."""

    __tablename__ = "shows"

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Show timing
    show_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    show_time: Mapped[str] = mapped_column(String(5), nullable=False)
    display_label: Mapped[str] = mapped_column(String(255), nullable=False)

    # Number of seat numbers in the hall, blocked ones included
    total_seats: Mapped[int] = mapped_column(Integer, nullable=False, default=70)

    # Relationships
    bookings: Mapped[List["Booking"]] = relationship(
        "Booking",
        back_populates="show",
        passive_deletes=True
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("total_seats > 0", name="ck_shows_total_seats_positive"),
    )

    @property
    def capacity(self) -> int:
        """Seats that can actually be assigned for this show."""
        return assignable_capacity(self.total_seats)

    @property
    def label(self) -> str:
        """Human label used in notifications and admin views."""
        return self.display_label or f"{self.show_date.isoformat()} {self.show_time}"

    def __repr__(self) -> str:
        """String representation of the show."""
        return (
            f"<Show(id={self.id}, title='{self.title}', "
            f"date={self.show_date}, time={self.show_time}, seats={self.total_seats})>"
        )
