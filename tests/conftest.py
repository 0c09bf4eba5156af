"""
Shared fixtures for route composer tests.

Locations model an Istanbul -> Izmir / London network:
- TAKSIM, TAXI_START: Istanbul city points
- IST, SAW: Istanbul airports
- ADB: Izmir airport, KONAK: Izmir city point
- LHR: London Heathrow, WEMBLEY: London city point
"""

from typing import Callable, Iterable, List, Tuple

import pandas as pd
import pytest

from src.route_composer.adapters.data_providers.dataframe_provider import (
    DataFrameTransportationProvider,
)
from src.route_composer.adapters.repositories.transportation_graph_repo import (
    CachedTransportationGraph,
    build_graph,
)
from src.route_composer.application.find_routes import FindRoutes
from src.route_composer.config import RouterSettings

LegRow = Tuple[str, str, str, str, str]

LEG_COLUMNS = [
    "leg_id",
    "origin_id",
    "destination_id",
    "transportation_type",
    "operating_days",
]


@pytest.fixture
def locations_df() -> pd.DataFrame:
    """Eight live locations with mixed display orders."""
    return pd.DataFrame(
        {
            "location_id": [
                "loc-taksim",
                "loc-taxi-start",
                "loc-ist",
                "loc-saw",
                "loc-adb",
                "loc-konak",
                "loc-lhr",
                "loc-wembley",
            ],
            "name": [
                "Taksim Square",
                "Taxi Rank",
                "Istanbul Airport",
                "Sabiha Gokcen Airport",
                "Adnan Menderes Airport",
                "Konak Square",
                "London Heathrow",
                "Wembley Stadium",
            ],
            "country": [
                "Turkey",
                "Turkey",
                "Turkey",
                "Turkey",
                "Turkey",
                "Turkey",
                "United Kingdom",
                "United Kingdom",
            ],
            "city": [
                "Istanbul",
                "Istanbul",
                "Istanbul",
                "Istanbul",
                "Izmir",
                "Izmir",
                "London",
                "London",
            ],
            "location_code": [
                "TAKSIM",
                "TAXI_START",
                "IST",
                "SAW",
                "ADB",
                "KONAK",
                "LHR",
                "WEMBLEY",
            ],
            "display_order": [5.0, None, 1.0, 2.0, 3.0, None, 4.0, 6.0],
        }
    )


@pytest.fixture
def legs_df() -> Callable[[Iterable[LegRow]], pd.DataFrame]:
    """Factory turning (id, origin, destination, type, days) tuples into a frame."""

    def _make(rows: Iterable[LegRow]) -> pd.DataFrame:
        return pd.DataFrame(list(rows), columns=LEG_COLUMNS)

    return _make


@pytest.fixture
def make_graph(
    locations_df: pd.DataFrame,
    legs_df: Callable[[Iterable[LegRow]], pd.DataFrame],
) -> Callable[[Iterable[LegRow]], CachedTransportationGraph]:
    """Factory building a graph snapshot from leg tuples."""

    def _make(rows: Iterable[LegRow]) -> CachedTransportationGraph:
        return build_graph(locations_df, legs_df(rows))

    return _make


@pytest.fixture
def make_router(
    locations_df: pd.DataFrame,
    legs_df: Callable[[Iterable[LegRow]], pd.DataFrame],
):
    """Factory building a FindRoutes over an in-memory provider."""
    routers: List[FindRoutes] = []

    def _make(rows: Iterable[LegRow], **settings_kwargs) -> FindRoutes:
        provider = DataFrameTransportationProvider(locations_df, legs_df(rows))
        router = FindRoutes(
            data_provider=provider,
            settings=RouterSettings(**settings_kwargs),
            auto_refresh=False,
        )
        routers.append(router)
        return router

    yield _make

    for router in routers:
        router.shutdown()
