"""
Location schemas.

A location is a named place with a unique short code (IATA code for
airports, custom codes for city points). The search core treats it as a
lookup key plus a presentational payload.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import pandera as pa
from pandera.typing import DataFrame, Series


class LocationSchema(pa.DataFrameModel):
    """
    Tabular contract for locations delivered by data providers.

    display_order is stored as float for NaN support.
    """

    location_id: Series[str] = pa.Field(
        nullable=False,
        unique=True,
        description="Location identifier",
    )
    name: Series[str] = pa.Field(
        nullable=False,
        description="Display name (e.g., 'Istanbul Airport')",
    )
    country: Series[str] = pa.Field(nullable=False)
    city: Series[str] = pa.Field(nullable=False)
    location_code: Series[str] = pa.Field(
        nullable=False,
        unique=True,
        str_length={"min_value": 1, "max_value": 10},
        description="Unique short code (e.g., 'IST', 'TAKSIM')",
    )
    display_order: Series[float] = pa.Field(
        nullable=True,
        description="Sort hint for UI lists",
    )

    class Config:
        strict = False
        coerce = True
        name = "LocationSchema"

    @pa.check("location_code")
    def code_unique_ignoring_case(cls, series: Series[str]) -> Series[bool]:
        """Reject codes that differ only in letter case."""
        return ~series.str.upper().duplicated(keep=False)


LocationDataFrame = DataFrame[LocationSchema]


@dataclass(frozen=True)
class Location:
    """Immutable location payload."""

    location_id: str
    name: str
    country: str
    city: str
    location_code: str
    display_order: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Location":
        """Build a Location from a LocationSchema row."""
        order = row.get("display_order")
        if order is None or (isinstance(order, float) and math.isnan(order)):
            order = None
        else:
            order = int(order)

        return cls(
            location_id=str(row["location_id"]),
            name=str(row["name"]),
            country=str(row["country"]),
            city=str(row["city"]),
            location_code=str(row["location_code"]),
            display_order=order,
        )

    @property
    def sort_key(self) -> tuple:
        """Display order first (unset last), then code."""
        return (
            self.display_order is None,
            self.display_order if self.display_order is not None else 0,
            self.location_code,
        )
