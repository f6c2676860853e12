"""
Seat topology for the theater hall.

Seat numbers are 0-based and laid out row by row, ``SEATS_PER_ROW`` seats per
row, split into a left and a right side of ``SEATS_PER_SIDE`` seats each::

    row A:  0  1  2  3  4 | 5  6  7  8  9
    row B: 10 11 12 13 14 | 15 16 17 18 19
    ...

The two aisle-most seats of the front row (0 and 9) are structurally blocked
and can never be assigned. Everything here is pure and independent of
storage, so both booking creation and seat modification share one scheme.
"""

from typing import Any, Iterable, List, Optional, Tuple

from ..utils.exceptions import ValidationError

SEATS_PER_ROW = 10
SEATS_PER_SIDE = 5
MAX_SEATS_PER_BOOKING = 5

# (row index, seat index within row)
_BLOCKED_POSITIONS = frozenset({(0, 0), (0, SEATS_PER_ROW - 1)})


def seat_position(seat_number: int) -> Tuple[str, str]:
    """
    Split a seat number into its row letter and 1-based seat-in-row label.

    Args:
        seat_number: 0-based seat number

    Returns:
        Tuple of (row label, seat label within the row)
    """
    if seat_number < 0:
        raise ValueError(f"Seat number must be non-negative, got {seat_number}")
    row, seat_in_row = divmod(seat_number, SEATS_PER_ROW)
    return chr(ord("A") + row), str(seat_in_row + 1)


def seat_label(seat_number: int) -> str:
    """Human-readable label, e.g. 0 -> "A1", 13 -> "B4"."""
    row, seat = seat_position(seat_number)
    return f"{row}{seat}"


def seat_side(seat_number: int) -> str:
    """Which side of the center aisle the seat is on."""
    return "left" if seat_number % SEATS_PER_ROW < SEATS_PER_SIDE else "right"


def is_structurally_blocked(seat_number: int) -> bool:
    """True for seats that may never be assigned."""
    return divmod(seat_number, SEATS_PER_ROW) in _BLOCKED_POSITIONS


def blocked_seats(total_seats: int) -> List[int]:
    """All blocked seat numbers inside a hall of ``total_seats`` numbers."""
    return [n for n in range(total_seats) if is_structurally_blocked(n)]


def assignable_capacity(total_seats: int) -> int:
    """Number of seats that can actually be booked for a hall."""
    return max(total_seats - len(blocked_seats(total_seats)), 0)


def seat_labels(seat_numbers: Iterable[int]) -> List[str]:
    return [seat_label(n) for n in sorted(seat_numbers)]


def validate_seat_selection(seats: Any, total_seats: Optional[int] = None) -> List[int]:
    """
    Validate the shape of a requested seat set.

    Range checking needs the show, so it only happens when ``total_seats``
    is supplied; everything else needs no storage access.

    Args:
        seats: Requested seat numbers
        total_seats: Seat count of the show, if known

    Returns:
        The seat numbers, sorted ascending

    Raises:
        ValidationError: If the selection is malformed, too large, repeats a
            seat, hits a blocked seat, or falls outside the hall
    """
    if not isinstance(seats, (list, tuple)) or len(seats) == 0:
        raise ValidationError(
            "At least one seat must be selected",
            field_errors={"seats": ["Select between 1 and 5 seats"]}
        )

    if len(seats) > MAX_SEATS_PER_BOOKING:
        raise ValidationError(
            f"At most {MAX_SEATS_PER_BOOKING} seats can be booked at once",
            field_errors={"seats": [f"Select between 1 and {MAX_SEATS_PER_BOOKING} seats"]}
        )

    # bool is an int subclass but never a seat
    invalid = [s for s in seats if isinstance(s, bool) or not isinstance(s, int)]
    if invalid:
        raise ValidationError(
            "Seat numbers must be integers",
            field_errors={"seats": [f"Invalid seat value: {s!r}" for s in invalid]}
        )

    if len(set(seats)) != len(seats):
        raise ValidationError(
            "Duplicate seats in selection",
            field_errors={"seats": ["Each seat can only be selected once"]}
        )

    negative = [s for s in seats if s < 0]
    if negative:
        raise ValidationError(
            "Seat numbers must be non-negative",
            field_errors={"seats": [f"Invalid seat number: {s}" for s in negative]}
        )

    blocked = [s for s in seats if is_structurally_blocked(s)]
    if blocked:
        raise ValidationError(
            f"Seats cannot be booked: {', '.join(seat_label(s) for s in sorted(blocked))}",
            field_errors={"seats": [f"Seat {seat_label(s)} is blocked" for s in sorted(blocked)]}
        )

    if total_seats is not None:
        out_of_range = [s for s in seats if s >= total_seats]
        if out_of_range:
            raise ValidationError(
                f"Seat numbers must be between 0 and {total_seats - 1}",
                field_errors={"seats": [f"Seat {s} does not exist" for s in sorted(out_of_range)]}
            )

    return sorted(seats)
