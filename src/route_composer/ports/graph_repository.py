"""
Graph Repository port interface.

Defines the read-only graph accessor used by composers and the caching
protocol for transportation graph snapshots.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from src.route_composer.adapters.repositories.transportation_graph_repo import (
        CachedTransportationGraph,
    )
    from src.route_composer.schemas.location import Location
    from src.route_composer.schemas.transportation import TransportationLeg


class GraphNotInitializedError(Exception):
    """Raised when graph is accessed before first load."""

    pass


@runtime_checkable
class TransportationGraph(Protocol):
    """
    Read-only view over transportation legs keyed by origin location.

    Every leg returned by legs_from(location_id) has origin_id equal to
    location_id. A single call returns a point-in-time-consistent sequence.
    """

    def legs_from(self, location_id: str) -> Sequence[TransportationLeg]:
        """Outbound legs of a location (empty if none)."""
        ...

    def flight_legs(self) -> Sequence[TransportationLeg]:
        """All FLIGHT legs, in stable iteration order."""
        ...

    def get_location(self, location_id: str) -> Optional[Location]:
        """Location payload or None if unknown."""
        ...


@runtime_checkable
class TransportationGraphCache(Protocol):
    """
    Protocol for graph caching.

    Backends hold at most one snapshot. All implementations must be
    thread-safe for concurrent access.
    """

    def get(self) -> Optional[CachedTransportationGraph]:
        """
        Get cached graph or None if miss.

        Returns:
            Cached graph if available, None otherwise.
        """
        ...

    def set(self, graph: CachedTransportationGraph) -> None:
        """
        Store graph in cache.

        Args:
            graph: The CachedTransportationGraph to store.
        """
        ...

    def invalidate(self) -> None:
        """
        Invalidate current cache.

        Clears the cached graph, forcing a rebuild on next access.
        """
        ...

    @property
    def is_stale(self) -> bool:
        """
        Check if cache needs refresh.

        Returns:
            True if cache is empty or TTL has expired.
        """
        ...
