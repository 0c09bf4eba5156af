"""
Day-of-Week Filter.

Decides whether a transportation leg operates on a calendar date.
Operating days are ISO weekday numbers: 1 (Monday) through 7 (Sunday).
Dates are treated as calendar dates; no timezone adjustment is made.
"""

from __future__ import annotations

import numbers
from datetime import date, datetime
from typing import TYPE_CHECKING, AbstractSet, FrozenSet, Iterable, Optional

from src.route_composer.exceptions import InvalidOperatingDaysError

if TYPE_CHECKING:
    from src.route_composer.schemas.transportation import TransportationLeg

MONDAY = 1
SUNDAY = 7
ALL_DAYS: FrozenSet[int] = frozenset(range(MONDAY, SUNDAY + 1))


def iso_day_of_week(value: date) -> int:
    """
    ISO weekday number of a calendar date.

    A datetime contributes only its date part, so 2025-11-28T23:30+03:00
    is still a Friday.

    Args:
        value: Date or datetime.

    Returns:
        1 for Monday through 7 for Sunday.
    """
    if isinstance(value, datetime):
        value = value.date()
    return value.isoweekday()


def operates_on(leg: TransportationLeg, travel_date: date) -> bool:
    """Check if the leg runs on the weekday of travel_date."""
    return iso_day_of_week(travel_date) in leg.operating_days


def validate_operating_days(
    days: Iterable[int],
    leg_id: Optional[str] = None,
) -> FrozenSet[int]:
    """
    Validate a collection of operating days and freeze it.

    Malformed input is rejected, never repaired.

    Args:
        days: Weekday numbers.
        leg_id: Leg identifier for error messages.

    Returns:
        Frozenset of weekday numbers.

    Raises:
        InvalidOperatingDaysError: If empty, duplicated, non-integer
            or outside 1..7.
    """
    values = list(days)
    if not values:
        raise InvalidOperatingDaysError(values, "must not be empty", leg_id)

    for day in values:
        # bool is an int subclass
        if isinstance(day, bool) or not isinstance(day, numbers.Integral):
            raise InvalidOperatingDaysError(values, f"{day!r} is not an integer", leg_id)
        if day < MONDAY or day > SUNDAY:
            raise InvalidOperatingDaysError(
                values,
                f"{day} must be between 1 (Monday) and 7 (Sunday)",
                leg_id,
            )

    unique = frozenset(int(day) for day in values)
    if len(unique) != len(values):
        raise InvalidOperatingDaysError(values, "must not contain duplicates", leg_id)

    return unique


def parse_operating_days(text: str, leg_id: Optional[str] = None) -> FrozenSet[int]:
    """
    Parse the persisted comma-separated form, e.g. "1,3,5,7".

    Args:
        text: Comma-separated weekday numbers. Whitespace around tokens is allowed.
        leg_id: Leg identifier for error messages.

    Returns:
        Frozenset of weekday numbers.

    Raises:
        InvalidOperatingDaysError: On blank text, non-numeric tokens or
            any rule rejected by validate_operating_days.
    """
    if text is None or not str(text).strip():
        raise InvalidOperatingDaysError(text, "must not be empty", leg_id)

    days = []
    for token in str(text).split(","):
        token = token.strip()
        try:
            days.append(int(token))
        except ValueError:
            raise InvalidOperatingDaysError(
                text, f"token {token!r} is not an integer", leg_id
            ) from None

    return validate_operating_days(days, leg_id)


def format_operating_days(days: AbstractSet[int]) -> str:
    """Persisted form of a set of operating days, sorted ascending."""
    return ",".join(str(day) for day in sorted(days))
