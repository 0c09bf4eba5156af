"""
Schema definitions for the route composer.

Pandera-validated DataFrames for provider data, frozen dataclasses for
legs, queries and results.
"""

from .location import Location, LocationDataFrame, LocationSchema
from .query import RouteQuery
from .route import (
    ALL_SHAPES,
    MAX_ROUTE_LEGS,
    Route,
    RouteCandidate,
    RouteSegment,
    RouteShape,
)
from .transportation import (
    TransportationDataFrame,
    TransportationLeg,
    TransportationSchema,
    TransportationType,
)

__all__ = [
    # Locations
    "Location",
    "LocationSchema",
    "LocationDataFrame",
    # Legs
    "TransportationLeg",
    "TransportationSchema",
    "TransportationDataFrame",
    "TransportationType",
    # Query
    "RouteQuery",
    # Routes
    "ALL_SHAPES",
    "MAX_ROUTE_LEGS",
    "Route",
    "RouteCandidate",
    "RouteSegment",
    "RouteShape",
]
