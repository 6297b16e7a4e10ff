"""Minimum-stay rules for booking forms.

The catalog reports a minimum stay with each quote; booking forms combine it
with a house-wide floor, reject shorter ranges, and push the check-out date
forward when a newly picked check-in would make the range too short.
"""

from datetime import date, timedelta

DEFAULT_MINIMUM_STAY = 3


class InvalidStayError(ValueError):
    """Check-out is on or before check-in."""


class StayTooShortError(ValueError):
    """The stay is shorter than the minimum number of nights."""

    def __init__(self, nights: int, minimum_nights: int) -> None:
        self.nights = nights
        self.minimum_nights = minimum_nights
        super().__init__(f"Minimum stay is {minimum_nights} nights; requested stay is {nights} nights.")


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def effective_minimum_stay(quoted: int | None, floor: int = DEFAULT_MINIMUM_STAY) -> int:
    if quoted is None:
        return max(floor, 1)
    return max(quoted, floor, 1)


def advance_check_out(check_in: date, check_out: date | None, minimum_nights: int) -> date:
    """Earliest valid check-out at or after ``check_out`` for a stay from ``check_in``."""
    earliest = check_in + timedelta(days=minimum_nights)
    if check_out is None or check_out < earliest:
        return earliest
    return check_out


def validate_stay(check_in: date, check_out: date, minimum_nights: int) -> int:
    """Return the number of nights, or raise if the range is unusable."""
    nights = nights_between(check_in, check_out)
    if nights <= 0:
        raise InvalidStayError("check_out must be after check_in")
    if nights < minimum_nights:
        raise StayTooShortError(nights, minimum_nights)
    return nights
