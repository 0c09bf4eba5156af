"""
Route query schema.

Defines the validated search parameters passed to route composers.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from src.route_composer.operating_days import iso_day_of_week

DateLike = Union[date, datetime, str]

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class RouteQuery:
    """
    Immutable route search query.

    Frozen so a single query can be shared across threads.

    Attributes:
        origin_id: Origin location identifier.
        destination_id: Destination location identifier.
        travel_date: Calendar date of travel (no time, no timezone).
    """

    origin_id: str
    destination_id: str
    travel_date: date

    def __post_init__(self) -> None:
        """Validate query after initialization."""
        if not self.origin_id:
            raise ValueError("origin_id cannot be empty")
        if not self.destination_id:
            raise ValueError("destination_id cannot be empty")
        if isinstance(self.travel_date, datetime) or not isinstance(self.travel_date, date):
            raise ValueError(
                f"travel_date must be a date, got {type(self.travel_date).__name__}"
            )

    @classmethod
    def create(
        cls,
        origin_id: str,
        destination_id: str,
        travel_date: DateLike,
    ) -> "RouteQuery":
        """
        Factory method for creating a RouteQuery.

        Normalises travel_date: datetimes keep only their date part and
        strings must be ISO formatted (YYYY-MM-DD).

        Raises:
            ValueError: If an identifier is empty or the date cannot be parsed.
        """
        if isinstance(travel_date, datetime):
            travel_date = travel_date.date()
        elif isinstance(travel_date, str):
            text = travel_date.strip()
            if not _ISO_DATE.fullmatch(text):
                raise ValueError(f"travel_date must be YYYY-MM-DD, got {travel_date!r}")
            travel_date = date.fromisoformat(text)

        return cls(
            origin_id=str(origin_id) if origin_id is not None else "",
            destination_id=str(destination_id) if destination_id is not None else "",
            travel_date=travel_date,
        )

    @property
    def day_of_week(self) -> int:
        """ISO weekday of travel_date (1=Monday..7=Sunday)."""
        return iso_day_of_week(self.travel_date)

    @property
    def is_round_trip_to_self(self) -> bool:
        return self.origin_id == self.destination_id
