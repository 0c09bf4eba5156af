"""
Port interfaces for the route composer.

Ports define the abstract interfaces (ABCs and Protocols) that the domain
layer uses to communicate with external systems. This follows the
Ports and Adapters (Hexagonal) architecture pattern.
"""

from src.route_composer.ports.graph_repository import (
    GraphNotInitializedError,
    TransportationGraph,
    TransportationGraphCache,
)
from src.route_composer.ports.route_composer import RouteComposer
from src.route_composer.ports.transportation_data_provider import (
    TransportationDataProvider,
)

__all__ = [
    "GraphNotInitializedError",
    "RouteComposer",
    "TransportationDataProvider",
    "TransportationGraph",
    "TransportationGraphCache",
]
