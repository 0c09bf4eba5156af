"""
Repository adapters for transportation graph and result caching.
"""

from src.route_composer.adapters.repositories.route_result_cache import (
    RouteResultCache,
)
from src.route_composer.adapters.repositories.transportation_graph_repo import (
    CachedTransportationGraph,
    InMemoryTransportationGraphCache,
    LocationIndex,
    TransportationGraphRepository,
    build_graph,
    build_location_index,
)

__all__ = [
    "CachedTransportationGraph",
    "InMemoryTransportationGraphCache",
    "LocationIndex",
    "RouteResultCache",
    "TransportationGraphRepository",
    "build_graph",
    "build_location_index",
]
