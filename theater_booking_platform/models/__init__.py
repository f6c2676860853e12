"""
Database models for the Theater booking platform.
"""

from .base import Base
from .show import Show
from .booking import Booking, BookingStatus, ACTIVE_STATUSES
from .seat_assignment import SeatAssignment
from .booking_history import BookingHistory, BookingAction

__all__ = [
    "Base",
    "Show",
    "Booking",
    "BookingStatus",
    "ACTIVE_STATUSES",
    "SeatAssignment",
    "BookingHistory",
    "BookingAction",
]
