"""
In-memory DataFrame provider.

Holds locations and legs as pandas DataFrames. Used by tests, demos and
any caller that already has the data in memory.
"""

import logging
import threading
import uuid
from typing import Iterable, Optional

import pandas as pd

from src.route_composer.adapters.data_providers.sqlite_provider import (
    LOCATION_COLUMNS,
    TRANSPORTATION_COLUMNS,
)
from src.route_composer.exceptions import DuplicateResourceError, LocationInUseError
from src.route_composer.operating_days import format_operating_days
from src.route_composer.ports.transportation_data_provider import (
    TransportationDataProvider,
)
from src.route_composer.schemas.location import LocationDataFrame, LocationSchema
from src.route_composer.schemas.transportation import (
    TransportationDataFrame,
    TransportationLeg,
    TransportationSchema,
    TransportationType,
)

logger = logging.getLogger(__name__)


class DataFrameTransportationProvider(TransportationDataProvider):
    """
    Provider backed by in-memory DataFrames.

    Reads return validated copies, so callers never share the backing
    frames. Writes notify change listeners like any other provider.
    """

    def __init__(
        self,
        locations_df: Optional[pd.DataFrame] = None,
        transportations_df: Optional[pd.DataFrame] = None,
    ) -> None:
        super().__init__()
        if locations_df is None:
            locations_df = pd.DataFrame(columns=LOCATION_COLUMNS)
        if transportations_df is None:
            transportations_df = pd.DataFrame(columns=TRANSPORTATION_COLUMNS)

        self._locations = locations_df.copy()
        if "display_order" not in self._locations.columns:
            self._locations["display_order"] = float("nan")
        self._transportations = transportations_df.copy()
        self._lock = threading.Lock()
        self.read_count = 0

    def get_locations_df(self) -> LocationDataFrame:
        with self._lock:
            df = self._locations.copy()
        if df.empty:
            return df
        return LocationSchema.validate(df)

    def get_transportations_df(self) -> TransportationDataFrame:
        with self._lock:
            df = self._transportations.copy()
            self.read_count += 1
        if df.empty:
            return df
        return TransportationSchema.validate(df)

    def add_location(
        self,
        name: str,
        country: str,
        city: str,
        location_code: str,
        display_order: Optional[int] = None,
        location_id: Optional[str] = None,
    ) -> str:
        """
        Append a location and return its id.

        Raises:
            DuplicateResourceError: If the code exists in any letter case.
        """
        location_id = location_id or str(uuid.uuid4())
        row = {
            "location_id": location_id,
            "name": name,
            "country": country,
            "city": city,
            "location_code": location_code,
            "display_order": float(display_order) if display_order is not None else float("nan"),
        }
        with self._lock:
            codes = self._locations["location_code"].astype(str).str.upper()
            if (codes == location_code.upper()).any():
                raise DuplicateResourceError("Location", "location_code", location_code)
            self._locations = _append_row(self._locations, row, LOCATION_COLUMNS)
        self._notify_changed()
        return location_id

    def remove_location(self, location_id: str) -> bool:
        """
        Remove a location. Returns False if the location is unknown.

        Raises:
            LocationInUseError: If a leg starts or ends at the location.
        """
        with self._lock:
            mask = self._locations["location_id"] == location_id
            if not mask.any():
                return False
            legs = self._transportations
            if not legs.empty and (
                (legs["origin_id"] == location_id)
                | (legs["destination_id"] == location_id)
            ).any():
                name = self._locations.loc[mask, "name"].iloc[0]
                raise LocationInUseError(name)
            self._locations = self._locations[~mask].reset_index(drop=True)
        self._notify_changed()
        return True

    def add_transportation(
        self,
        origin_id: str,
        destination_id: str,
        transportation_type: TransportationType | str,
        operating_days: Iterable[int],
        leg_id: Optional[str] = None,
    ) -> str:
        """
        Append a validated leg and return its id.

        Raises:
            SelfLoopLegError: If origin equals destination.
            InvalidOperatingDaysError: If operating days are malformed.
        """
        leg = TransportationLeg(
            leg_id=leg_id or str(uuid.uuid4()),
            origin_id=origin_id,
            destination_id=destination_id,
            transportation_type=TransportationType(transportation_type),
            operating_days=list(operating_days),
        )
        with self._lock:
            self._transportations = _append_row(
                self._transportations, _leg_to_row(leg), TRANSPORTATION_COLUMNS
            )
        self._notify_changed()
        return leg.leg_id

    def update_transportation(
        self,
        leg_id: str,
        origin_id: str,
        destination_id: str,
        transportation_type: TransportationType | str,
        operating_days: Iterable[int],
    ) -> bool:
        """Replace a leg's fields. Returns False if the leg is unknown."""
        leg = TransportationLeg(
            leg_id=leg_id,
            origin_id=origin_id,
            destination_id=destination_id,
            transportation_type=TransportationType(transportation_type),
            operating_days=list(operating_days),
        )
        row = _leg_to_row(leg)
        with self._lock:
            mask = self._transportations["leg_id"] == leg_id
            if not mask.any():
                return False
            for column in TRANSPORTATION_COLUMNS:
                self._transportations.loc[mask, column] = row[column]
        self._notify_changed()
        return True

    def remove_transportation(self, leg_id: str) -> bool:
        """Remove a leg. Returns False if the leg is unknown."""
        with self._lock:
            mask = self._transportations["leg_id"] == leg_id
            if not mask.any():
                return False
            self._transportations = self._transportations[~mask].reset_index(drop=True)
        self._notify_changed()
        return True

    @property
    def name(self) -> str:
        return "In-memory DataFrames"


def _leg_to_row(leg: TransportationLeg) -> dict:
    return {
        "leg_id": leg.leg_id,
        "origin_id": leg.origin_id,
        "destination_id": leg.destination_id,
        "transportation_type": leg.transportation_type.value,
        "operating_days": format_operating_days(leg.operating_days),
    }


def _append_row(df: pd.DataFrame, row: dict, columns: list) -> pd.DataFrame:
    new_row = pd.DataFrame([row], columns=columns)
    if df.empty:
        return new_row
    return pd.concat([df, new_row], ignore_index=True)
