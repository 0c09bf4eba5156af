"""
Tests for the transportation graph repository.

Tests cover:
- LocationIndex and build_location_index()
- build_graph(): sorting, filtering, integrity checks, versioning
- InMemoryTransportationGraphCache TTL handling
- TransportationGraphRepository caching, invalidation and cold-start errors
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pandas as pd
import pytest

from src.route_composer.adapters.data_providers.dataframe_provider import (
    DataFrameTransportationProvider,
)
from src.route_composer.adapters.repositories.transportation_graph_repo import (
    InMemoryTransportationGraphCache,
    LocationIndex,
    TransportationGraphRepository,
    build_graph,
    build_location_index,
)
from src.route_composer.exceptions import (
    DataIntegrityError,
    InvalidOperatingDaysError,
    SelfLoopLegError,
)
from src.route_composer.ports.graph_repository import GraphNotInitializedError
from src.route_composer.ports.transportation_data_provider import (
    TransportationDataProvider,
)

LEGS = [
    ("leg-3", "loc-ist", "loc-lhr", "FLIGHT", "1,2,3,4,5,6,7"),
    ("leg-1", "loc-taksim", "loc-ist", "BUS", "1,2,3,4,5"),
    ("leg-2", "loc-ist", "loc-adb", "FLIGHT", "1,3,5"),
    ("leg-4", "loc-lhr", "loc-wembley", "SUBWAY", "6,7"),
]


# =============================================================================
# HELPERS
# =============================================================================


class FailingProvider(TransportationDataProvider):
    """Provider whose reads always fail."""

    def get_locations_df(self):
        raise ConnectionError("database is down")

    def get_transportations_df(self):
        raise ConnectionError("database is down")

    @property
    def name(self) -> str:
        return "Failing"


class InvalidatingProvider(DataFrameTransportationProvider):
    """Provider that reports a write while a graph is being built."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fire_during_read = True

    def get_transportations_df(self):
        df = super().get_transportations_df()
        if self.fire_during_read:
            self.fire_during_read = False
            self._notify_changed()
        return df


@pytest.fixture
def provider(locations_df, legs_df) -> DataFrameTransportationProvider:
    return DataFrameTransportationProvider(locations_df, legs_df(LEGS))


@pytest.fixture
def repo(provider):
    cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
    repository = TransportationGraphRepository(provider, cache, auto_refresh=False)
    yield repository
    repository.shutdown()


# =============================================================================
# LOCATION INDEX
# =============================================================================


class TestLocationIndex:
    """Tests for LocationIndex and build_location_index()."""

    def test_len(self):
        assert len(LocationIndex(start=2, end=5)) == 3

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            LocationIndex(start=-1, end=2)

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            LocationIndex(start=3, end=2)

    def test_builds_ranges_per_origin(self):
        df = pd.DataFrame({"origin_id": ["ADB", "ADB", "IST", "LHR", "LHR", "LHR"]})

        index = build_location_index(df)

        assert index == {
            "ADB": LocationIndex(0, 2),
            "IST": LocationIndex(2, 3),
            "LHR": LocationIndex(3, 6),
        }

    def test_empty_frame(self):
        assert build_location_index(pd.DataFrame({"origin_id": []})) == {}


# =============================================================================
# BUILD GRAPH
# =============================================================================


class TestBuildGraph:
    """Tests for build_graph()."""

    def test_legs_sorted_by_origin_then_id(self, make_graph):
        graph = make_graph(LEGS)

        assert graph.legs_df["leg_id"].tolist() == ["leg-2", "leg-3", "leg-4", "leg-1"]

    def test_flights_in_graph_order(self, make_graph):
        graph = make_graph(LEGS)

        assert [f.leg_id for f in graph.flight_legs()] == ["leg-2", "leg-3"]

    def test_legs_from(self, make_graph):
        graph = make_graph(LEGS)

        assert [leg.leg_id for leg in graph.legs_from("loc-ist")] == ["leg-2", "leg-3"]
        assert graph.legs_from("loc-konak") == ()

    def test_all_locations_present_without_legs(self, make_graph):
        graph = make_graph([])

        assert graph.row_count == 0
        assert graph.has_location("loc-konak")
        assert graph.flight_legs() == ()

    def test_ordered_locations(self, make_graph):
        graph = make_graph(LEGS)

        codes = [loc.location_code for loc in graph.ordered_locations]

        assert codes == [
            "IST",
            "SAW",
            "ADB",
            "LHR",
            "TAKSIM",
            "WEMBLEY",
            "KONAK",
            "TAXI_START",
        ]

    def test_legs_to_unknown_locations_dropped(self, make_graph):
        graph = make_graph(LEGS + [("leg-9", "loc-ist", "loc-gone", "FLIGHT", "1")])

        assert graph.row_count == len(LEGS)
        assert "leg-9" not in graph.legs_df["leg_id"].tolist()

    def test_self_loop_raises(self, make_graph):
        with pytest.raises(SelfLoopLegError) as exc_info:
            make_graph(LEGS + [("leg-9", "loc-saw", "loc-saw", "BUS", "1")])

        assert exc_info.value.leg_ids == ("leg-9",)

    def test_malformed_days_raise(self, make_graph):
        with pytest.raises(InvalidOperatingDaysError):
            make_graph([("leg-9", "loc-ist", "loc-adb", "FLIGHT", "1,8")])

    def test_version_stable_for_same_content(self, make_graph):
        assert make_graph(LEGS).version == make_graph(list(reversed(LEGS))).version

    def test_version_changes_with_content(self, make_graph):
        changed = LEGS[:-1] + [("leg-4", "loc-lhr", "loc-wembley", "SUBWAY", "7")]

        assert make_graph(LEGS).version != make_graph(changed).version


# =============================================================================
# CACHE
# =============================================================================


class TestInMemoryCache:
    """Tests for InMemoryTransportationGraphCache."""

    def test_empty_cache_is_stale(self):
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))

        assert cache.get() is None
        assert cache.is_stale

    def test_fresh_graph_not_stale(self, make_graph):
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        cache.set(make_graph(LEGS))

        assert not cache.is_stale

    def test_old_graph_is_stale(self, make_graph):
        cache = InMemoryTransportationGraphCache(ttl=timedelta(minutes=5))
        graph = make_graph(LEGS)
        graph.built_at = datetime.now() - timedelta(minutes=10)
        cache.set(graph)

        assert cache.is_stale

    def test_invalidate(self, make_graph):
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        cache.set(make_graph(LEGS))

        cache.invalidate()

        assert cache.get() is None


# =============================================================================
# REPOSITORY
# =============================================================================


class TestTransportationGraphRepository:
    """Tests for TransportationGraphRepository."""

    def test_cold_start_builds_graph(self, repo):
        assert not repo.is_initialized

        graph = repo.get_graph()

        assert graph.row_count == len(LEGS)
        assert repo.is_initialized
        assert repo.current_version == graph.version

    def test_second_call_served_from_cache(self, repo, provider):
        first = repo.get_graph()
        second = repo.get_graph()

        assert first is second
        assert provider.read_count == 1

    def test_provider_write_invalidates(self, repo, provider):
        first = repo.get_graph()

        provider.add_transportation(
            "loc-saw", "loc-adb", "FLIGHT", [1, 2, 3], leg_id="leg-5"
        )

        assert not repo.is_initialized
        second = repo.get_graph()
        assert second is not first
        assert second.row_count == len(LEGS) + 1
        assert second.version != first.version

    def test_manual_invalidate(self, repo, provider):
        repo.get_graph()

        repo.invalidate()
        repo.get_graph()

        assert provider.read_count == 2

    def test_build_during_invalidation_not_cached(self, locations_df, legs_df):
        provider = InvalidatingProvider(locations_df, legs_df(LEGS))
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        repository = TransportationGraphRepository(provider, cache, auto_refresh=False)

        try:
            graph = repository.get_graph()

            assert graph.row_count == len(LEGS)
            assert not repository.is_initialized
            repository.get_graph()
            assert repository.is_initialized
            assert provider.read_count == 2
        finally:
            repository.shutdown()

    def test_provider_failure_raises_not_initialized(self):
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        repository = TransportationGraphRepository(
            FailingProvider(), cache, auto_refresh=False
        )

        try:
            with pytest.raises(GraphNotInitializedError) as exc_info:
                repository.get_graph()

            assert isinstance(exc_info.value.__cause__, ConnectionError)
        finally:
            repository.shutdown()

    def test_integrity_error_propagates_unwrapped(self, locations_df, legs_df):
        provider = DataFrameTransportationProvider(
            locations_df, legs_df([("leg-1", "loc-ist", "loc-adb", "FLIGHT", "0")])
        )
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        repository = TransportationGraphRepository(provider, cache, auto_refresh=False)

        try:
            with pytest.raises(DataIntegrityError):
                repository.get_graph()
        finally:
            repository.shutdown()

    def test_stale_graph_served_while_refreshing(self, provider):
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        repository = TransportationGraphRepository(provider, cache, auto_refresh=True)
        repository._trigger_background_refresh = MagicMock()

        try:
            first = repository.get_graph()
            first.built_at = datetime.now() - timedelta(hours=2)

            second = repository.get_graph()

            assert second is first
            repository._trigger_background_refresh.assert_called_once()
        finally:
            repository.shutdown()

    def test_background_refresh_swaps_graph(self, repo, provider):
        first = repo.get_graph()

        repo._background_refresh()

        assert repo.get_graph() is not first
        assert provider.read_count == 2

    def test_shutdown_detaches_listener(self, provider, locations_df):
        cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        repository = TransportationGraphRepository(provider, cache, auto_refresh=False)
        repository.get_graph()

        repository.shutdown()
        provider.add_location("Izmir Bus Station", "Turkey", "Izmir", "IZB")

        assert repository.is_initialized
