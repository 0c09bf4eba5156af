"""
Transportation Graph Repository - cached graph snapshots.

Implements the read-only graph accessor used by route composers with:
- Numpy-vectorized per-origin grouping of legs
- Double-buffer background refresh (zero-downtime)
- Change-listener invalidation so writes never leave a stale snapshot
"""

from __future__ import annotations

import hashlib
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from src.route_composer.exceptions import DataIntegrityError, SelfLoopLegError
from src.route_composer.ports.graph_repository import GraphNotInitializedError
from src.route_composer.schemas.location import Location
from src.route_composer.schemas.transportation import (
    TransportationLeg,
    TransportationType,
    find_self_loops,
)

if TYPE_CHECKING:
    from src.route_composer.ports.transportation_data_provider import (
        TransportationDataProvider,
    )

logger = logging.getLogger(__name__)

LEG_SORT_COLUMNS = ["origin_id", "leg_id"]


# =============================================================================
# LOCATION INDEX: row ranges of legs grouped by origin
# =============================================================================


@dataclass(frozen=True)
class LocationIndex:
    """
    Row range of the legs departing from one location.

    Stores the start and end indices (exclusive) in the legs DataFrame
    sorted by origin. build_graph slices its leg list with these ranges
    to group legs by origin.

    Attributes:
        start: Start index in sorted DataFrame (inclusive).
        end: End index in sorted DataFrame (exclusive).
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        """Validate index bounds."""
        if self.start < 0:
            raise ValueError(f"start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must be >= start ({self.start})")

    def __len__(self) -> int:
        return self.end - self.start


def build_location_index(df: pd.DataFrame) -> Dict[str, LocationIndex]:
    """
    Build index from a legs DataFrame pre-sorted by origin_id.

    Boundaries are found with vectorized numpy comparisons: a new origin
    starts wherever a value differs from its predecessor.

    Args:
        df: DataFrame MUST be pre-sorted by 'origin_id'.
            Index should be reset (0, 1, 2, ...).

    Returns:
        Dict mapping location id to LocationIndex with (start, end) range.

    Example:
        >>> df = pd.DataFrame({'origin_id': ['ADB', 'ADB', 'IST']})
        >>> build_location_index(df)
        {'ADB': LocationIndex(start=0, end=2), 'IST': LocationIndex(start=2, end=3)}
    """
    if df.empty:
        return {}

    origins = df["origin_id"].to_numpy()
    n = len(origins)

    change_mask = np.concatenate([[True], origins[1:] != origins[:-1]])
    change_indices = np.flatnonzero(change_mask)

    index: Dict[str, LocationIndex] = {}
    num_boundaries = len(change_indices)

    for i in range(num_boundaries):
        start = int(change_indices[i])
        end = int(change_indices[i + 1]) if i + 1 < num_boundaries else n
        index[str(origins[start])] = LocationIndex(start=start, end=end)

    return index


# =============================================================================
# CACHED TRANSPORTATION GRAPH: immutable snapshot
# =============================================================================


@dataclass
class CachedTransportationGraph:
    """
    Immutable snapshot of the transportation graph.

    legs_df is sorted by (origin_id, leg_id), so leg iteration order is
    deterministic for a given data set.

    Attributes:
        legs_df: Validated leg rows in graph order.
        locations: Location id -> Location payload.
        legs_by_origin: Location id -> outbound TransportationLeg objects.
        flights: Every FLIGHT leg in legs_df order.
        built_at: Timestamp when graph was built.
        version: Content hash for cache keys.
        row_count: Number of legs in graph.
    """

    legs_df: pd.DataFrame
    locations: Dict[str, Location]
    legs_by_origin: Dict[str, Tuple[TransportationLeg, ...]]
    flights: Tuple[TransportationLeg, ...]
    built_at: datetime
    version: str
    row_count: int
    _ordered_locations: Tuple[Location, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._ordered_locations = tuple(
            sorted(self.locations.values(), key=lambda loc: loc.sort_key)
        )

    def legs_from(self, location_id: str) -> Tuple[TransportationLeg, ...]:
        """Outbound legs of a location, empty tuple if none."""
        return self.legs_by_origin.get(location_id, ())

    def flight_legs(self) -> Tuple[TransportationLeg, ...]:
        return self.flights

    def get_location(self, location_id: str) -> Optional[Location]:
        return self.locations.get(location_id)

    def has_location(self, location_id: str) -> bool:
        return location_id in self.locations

    @property
    def ordered_locations(self) -> Tuple[Location, ...]:
        """Locations sorted by display order, then code."""
        return self._ordered_locations


# =============================================================================
# IN-MEMORY CACHE
# =============================================================================


class InMemoryTransportationGraphCache:
    """
    In-process cache holding a single graph snapshot.

    Each uvicorn worker has its own copy of the graph.
    Thread-safe for concurrent access within a single process.

    Attributes:
        _graph: Currently cached graph (or None).
        _ttl: Time-to-live for cache entries.
        _lock: Lock for thread-safe access.
    """

    def __init__(self, ttl: timedelta) -> None:
        """
        Initialize cache with TTL.

        Args:
            ttl: How long a cached graph remains fresh.
        """
        self._graph: Optional[CachedTransportationGraph] = None
        self._ttl = ttl
        self._lock = threading.Lock()

    def get(self) -> Optional[CachedTransportationGraph]:
        """Get cached graph or None if miss."""
        with self._lock:
            return self._graph

    def set(self, graph: CachedTransportationGraph) -> None:
        """Store graph in cache."""
        with self._lock:
            self._graph = graph

    def invalidate(self) -> None:
        """Clear cached graph."""
        with self._lock:
            self._graph = None

    @property
    def is_stale(self) -> bool:
        """Check if cache needs refresh."""
        with self._lock:
            if self._graph is None:
                return True
            return datetime.now() - self._graph.built_at > self._ttl


# =============================================================================
# GRAPH BUILDING
# =============================================================================


def build_graph(
    locations_df: pd.DataFrame,
    legs_df: pd.DataFrame,
) -> CachedTransportationGraph:
    """
    Build an immutable graph snapshot from provider DataFrames.

    Steps:
    1. Reject self-loop legs
    2. Drop legs whose endpoints are not live locations
    3. Sort by (origin_id, leg_id) and parse operating days
    4. Build location index and per-origin leg tuples
    5. Hash content for versioning

    Raises:
        SelfLoopLegError: If any leg starts and ends at the same location.
        InvalidOperatingDaysError: If any leg's operating days are malformed.
    """
    self_loops = find_self_loops(legs_df)
    if self_loops:
        raise SelfLoopLegError(self_loops)

    locations = {
        str(row["location_id"]): Location.from_row(row)
        for row in locations_df.to_dict("records")
    }

    if not legs_df.empty:
        known = legs_df["origin_id"].isin(list(locations)) & legs_df[
            "destination_id"
        ].isin(list(locations))
        if not known.all():
            logger.warning(
                "Ignoring %d leg(s) referencing unknown or deleted locations",
                int((~known).sum()),
            )
            legs_df = legs_df[known]

    legs_df = legs_df.sort_values(LEG_SORT_COLUMNS, kind="mergesort").reset_index(
        drop=True
    )
    version = _compute_version(locations_df, legs_df)

    legs: List[TransportationLeg] = [
        TransportationLeg.from_row(row) for row in legs_df.to_dict("records")
    ]
    location_index = build_location_index(legs_df)
    legs_by_origin = {
        origin: tuple(legs[idx.start : idx.end])
        for origin, idx in location_index.items()
    }
    flights = tuple(
        leg for leg in legs if leg.transportation_type is TransportationType.FLIGHT
    )

    return CachedTransportationGraph(
        legs_df=legs_df,
        locations=locations,
        legs_by_origin=legs_by_origin,
        flights=flights,
        built_at=datetime.now(),
        version=version,
        row_count=len(legs_df),
    )


def _compute_version(locations_df: pd.DataFrame, legs_df: pd.DataFrame) -> str:
    """Hash the full content of both frames for cache keys."""
    digest = hashlib.md5()
    for df in (locations_df, legs_df):
        digest.update(f"{len(df)}:{df.columns.tolist()}".encode())
        if len(df) > 0:
            hashed = pd.util.hash_pandas_object(df.astype(str), index=False)
            digest.update(hashed.to_numpy().tobytes())
    return digest.hexdigest()[:12]


# =============================================================================
# TRANSPORTATION GRAPH REPOSITORY: double-buffer with zero-downtime refresh
# =============================================================================


class TransportationGraphRepository:
    """
    Repository with zero-downtime refresh and write invalidation.

    Architecture:
    - The cache always points to a valid, servable graph (after cold start)
    - Stale graphs are rebuilt in a background thread, then swapped in
    - Readers never block after initialization
    - Provider writes invalidate the cache immediately, so the next read
      rebuilds instead of serving a stale snapshot

    Usage:
        >>> provider = SQLiteTransportationProvider("data/routes.db")
        >>> cache = InMemoryTransportationGraphCache(ttl=timedelta(hours=1))
        >>> repo = TransportationGraphRepository(provider, cache)
        >>> graph = repo.get_graph()
    """

    def __init__(
        self,
        data_provider: TransportationDataProvider,
        cache: InMemoryTransportationGraphCache,
        auto_refresh: bool = True,
    ) -> None:
        """
        Initialize repository with data provider and cache.

        Args:
            data_provider: Source for locations and legs.
            cache: Cache backend (InMemoryTransportationGraphCache or Protocol impl).
            auto_refresh: If True, rebuild in the background when stale.
        """
        self._provider = data_provider
        self._cache = cache
        self._auto_refresh = auto_refresh

        self._refresh_in_progress = False
        self._refresh_lock = threading.Lock()

        # Bumped on every invalidation; builds started under an older
        # generation are never cached.
        self._generation = 0
        self._generation_lock = threading.Lock()

        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="graph-refresh"
        )

        self._provider.add_change_listener(self.invalidate)

    def get_graph(self) -> CachedTransportationGraph:
        """
        Get current graph.

        First call (cold start, or first call after invalidation) blocks
        while building the graph. Later calls return the cached graph
        immediately, triggering a background refresh if stale.

        Returns:
            Current valid CachedTransportationGraph.

        Raises:
            DataIntegrityError: If persisted legs break a write-time invariant.
            GraphNotInitializedError: If the provider fails on cold start.
        """
        cached = self._cache.get()

        if cached is not None:
            if self._auto_refresh and self._cache.is_stale:
                self._trigger_background_refresh()
            return cached

        with self._refresh_lock:
            # Double-check after acquiring lock
            cached = self._cache.get()
            if cached is not None:
                return cached

            generation = self._current_generation()
            try:
                new_graph = self._build_graph()
            except DataIntegrityError:
                raise
            except Exception as e:
                logger.error("Cold start failed: %s", e)
                raise GraphNotInitializedError(
                    f"Failed to initialize transportation graph: {e}"
                ) from e

            if not self._set_if_current(new_graph, generation):
                logger.debug("Data changed during cold start, graph not cached")
                return new_graph

            logger.info(
                "Graph loaded: %d legs, %d locations (version %s)",
                new_graph.row_count,
                len(new_graph.locations),
                new_graph.version,
            )
            return new_graph

    def _trigger_background_refresh(self) -> None:
        """Trigger non-blocking background refresh."""
        with self._refresh_lock:
            if self._refresh_in_progress:
                return
            self._refresh_in_progress = True

        self._executor.submit(self._background_refresh)

    def _background_refresh(self) -> None:
        """Execute refresh in background thread."""
        generation = self._current_generation()
        try:
            new_graph = self._build_graph()

            # Atomic swap - readers see either old or new, never partial
            if not self._set_if_current(new_graph, generation):
                logger.debug("Data changed during refresh, discarding rebuilt graph")
                return

            logger.info(
                "Background refresh completed: %d legs, %d locations",
                new_graph.row_count,
                len(new_graph.locations),
            )
        except Exception as e:
            # Keep serving old data on failure
            logger.error("Background refresh failed: %s", e)
        finally:
            with self._refresh_lock:
                self._refresh_in_progress = False

    def _build_graph(self) -> CachedTransportationGraph:
        """Fetch both frames from the provider and build a snapshot."""
        locations_df = self._provider.get_locations_df()
        legs_df = self._provider.get_transportations_df()
        return build_graph(locations_df, legs_df)

    def _current_generation(self) -> int:
        with self._generation_lock:
            return self._generation

    def _set_if_current(
        self, graph: CachedTransportationGraph, generation: int
    ) -> bool:
        """Cache graph unless an invalidation happened since generation."""
        with self._generation_lock:
            if generation != self._generation:
                return False
            self._cache.set(graph)
            return True

    def force_refresh(self) -> None:
        """Force immediate background refresh."""
        self._trigger_background_refresh()

    def invalidate(self) -> None:
        """Invalidate cache and force a rebuild on next access."""
        with self._generation_lock:
            self._generation += 1
            self._cache.invalidate()
        logger.debug("Transportation graph invalidated")

    def shutdown(self) -> None:
        """Detach from the provider and stop the background executor."""
        self._provider.remove_change_listener(self.invalidate)
        self._executor.shutdown(wait=True)

    @property
    def is_initialized(self) -> bool:
        """Check if a graph is currently loaded."""
        return self._cache.get() is not None

    @property
    def current_version(self) -> Optional[str]:
        """Get version of currently cached graph."""
        graph = self._cache.get()
        return graph.version if graph else None
