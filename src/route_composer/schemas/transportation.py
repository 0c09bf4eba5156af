"""
Transportation leg schemas.

A leg is a directed edge between two locations with a fixed kind and a
weekly operating schedule. Schema validation happens at the provider
boundary; operating days are parsed when the graph is built.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Mapping

import pandas as pd
import pandera as pa
from pandera.typing import DataFrame, Series

from src.route_composer.exceptions import SelfLoopLegError
from src.route_composer.operating_days import (
    parse_operating_days,
    validate_operating_days,
)


class TransportationType(str, Enum):
    """Kinds of transportation. FLIGHT is mandatory in every route."""

    FLIGHT = "FLIGHT"
    BUS = "BUS"
    SUBWAY = "SUBWAY"
    UBER = "UBER"

    @property
    def is_ground(self) -> bool:
        """Every non-flight kind is a ground transfer."""
        return self is not TransportationType.FLIGHT


TRANSPORTATION_TYPES = [t.value for t in TransportationType]


class TransportationSchema(pa.DataFrameModel):
    """
    Tabular contract for transportation legs.

    operating_days keeps the persisted comma-separated form ("1,3,5,7").
    Range and duplicate checks run in parse_operating_days so that bad
    rows surface as InvalidOperatingDaysError rather than a schema error.
    """

    leg_id: Series[str] = pa.Field(
        nullable=False,
        unique=True,
        description="Transportation identifier",
    )
    origin_id: Series[str] = pa.Field(
        nullable=False,
        description="Origin location identifier",
    )
    destination_id: Series[str] = pa.Field(
        nullable=False,
        description="Destination location identifier",
    )
    transportation_type: Series[str] = pa.Field(
        nullable=False,
        isin=TRANSPORTATION_TYPES,
        description="One of FLIGHT, BUS, SUBWAY, UBER",
    )
    operating_days: Series[str] = pa.Field(
        nullable=False,
        description="Comma-separated ISO weekdays, e.g. '1,3,5'",
    )

    class Config:
        strict = False
        coerce = True
        name = "TransportationSchema"


TransportationDataFrame = DataFrame[TransportationSchema]


@dataclass(frozen=True)
class TransportationLeg:
    """
    Immutable transportation leg.

    Attributes:
        leg_id: Transportation identifier.
        origin_id: Origin location identifier.
        destination_id: Destination location identifier.
        transportation_type: Kind of transport.
        operating_days: ISO weekdays on which the leg runs.
    """

    leg_id: str
    origin_id: str
    destination_id: str
    transportation_type: TransportationType
    operating_days: FrozenSet[int]

    def __post_init__(self) -> None:
        """Validate write-time invariants."""
        if self.origin_id == self.destination_id:
            raise SelfLoopLegError([self.leg_id])
        if not isinstance(self.transportation_type, TransportationType):
            object.__setattr__(
                self, "transportation_type", TransportationType(self.transportation_type)
            )
        object.__setattr__(
            self,
            "operating_days",
            validate_operating_days(self.operating_days, self.leg_id),
        )

    @property
    def is_flight(self) -> bool:
        return self.transportation_type is TransportationType.FLIGHT

    @property
    def is_ground(self) -> bool:
        return self.transportation_type.is_ground

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TransportationLeg":
        """
        Build a leg from a TransportationSchema row.

        Accepts operating_days either as the persisted string or as an
        already-parsed collection.
        """
        leg_id = str(row["leg_id"])
        days = row["operating_days"]
        if isinstance(days, str):
            days = parse_operating_days(days, leg_id)
        else:
            days = validate_operating_days(days, leg_id)

        return cls(
            leg_id=leg_id,
            origin_id=str(row["origin_id"]),
            destination_id=str(row["destination_id"]),
            transportation_type=TransportationType(row["transportation_type"]),
            operating_days=days,
        )


def find_self_loops(legs_df: pd.DataFrame) -> list[str]:
    """Return ids of legs whose origin equals their destination."""
    if legs_df.empty:
        return []
    mask = legs_df["origin_id"] == legs_df["destination_id"]
    return legs_df.loc[mask, "leg_id"].astype(str).tolist()
