"""
Route Composer port interface.

Defines the abstract contract for route composition strategies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from src.route_composer.ports.graph_repository import TransportationGraph
    from src.route_composer.schemas.query import RouteQuery
    from src.route_composer.schemas.route import RouteCandidate


class RouteComposer(ABC):
    """
    Abstract interface for route composition strategies.

    Composers are pure functions of (graph snapshot, query): they hold no
    per-search state, so one instance can serve concurrent searches.

    Implementations:
    - SlotRouteComposer: bounded three-slot enumeration around one flight
    """

    @abstractmethod
    def compose(
        self,
        graph: TransportationGraph,
        query: RouteQuery,
    ) -> List[RouteCandidate]:
        """
        Enumerate every admissible leg sequence for the query.

        Args:
            graph: Snapshot of the transportation graph.
            query: Validated origin, destination and travel date.

        Returns:
            Candidates in discovery order. Empty when nothing qualifies.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Composer identifier.

        Returns:
            Human-readable composer name.
        """
        ...
