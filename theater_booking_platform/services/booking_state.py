"""
Booking status state machine.

    confirmed --check_in--> checked_in --check_out--> confirmed
    confirmed | checked_in --cancel--> cancelled

Cancelled is terminal. The functions here only decide whether a transition
is legal; persistence and side effects live in ``BookingService``.
"""

import enum
from typing import Dict, FrozenSet

from ..models.booking import Booking, BookingStatus
from ..models.booking_history import BookingAction
from ..utils.exceptions import BookingAlreadyCancelledError, InvalidBookingStateError


class Transition(enum.Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    CANCEL = "cancel"


# transition -> (allowed source states, target state)
TRANSITIONS: Dict[Transition, tuple] = {
    Transition.CHECK_IN: (frozenset({BookingStatus.CONFIRMED}), BookingStatus.CHECKED_IN),
    Transition.CHECK_OUT: (frozenset({BookingStatus.CHECKED_IN}), BookingStatus.CONFIRMED),
    Transition.CANCEL: (
        frozenset({BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN}),
        BookingStatus.CANCELLED,
    ),
}

HISTORY_ACTIONS: Dict[Transition, BookingAction] = {
    Transition.CHECK_IN: BookingAction.CHECKED_IN,
    Transition.CHECK_OUT: BookingAction.CHECKED_OUT,
    Transition.CANCEL: BookingAction.CANCELLED,
}


def allowed_sources(transition: Transition) -> FrozenSet[BookingStatus]:
    return TRANSITIONS[transition][0]


def can_transition(status: BookingStatus, transition: Transition) -> bool:
    """Check whether ``transition`` is legal from ``status``."""
    return status in allowed_sources(transition)


def next_status(booking: Booking, transition: Transition) -> BookingStatus:
    """
    Resolve the target status of a transition for a booking.

    Args:
        booking: Booking about to transition
        transition: Requested transition

    Returns:
        The status the booking moves to

    Raises:
        BookingAlreadyCancelledError: If cancelling a cancelled booking
        InvalidBookingStateError: If checking in or out from the wrong state
    """
    sources, target = TRANSITIONS[transition]
    if booking.status in sources:
        return target

    if transition is Transition.CANCEL:
        raise BookingAlreadyCancelledError(str(booking.id))

    required = next(iter(sources)).value
    raise InvalidBookingStateError(
        str(booking.id),
        required_state=required,
        current_state=booking.status.value,
    )
