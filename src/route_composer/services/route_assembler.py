"""
Route Assembler - converts accepted leg sequences into numbered routes.

Pure presentation transform: no filtering, no reordering.
"""

from typing import List, Sequence

from src.route_composer.exceptions import LocationNotFoundError
from src.route_composer.ports.graph_repository import TransportationGraph
from src.route_composer.schemas.location import Location
from src.route_composer.schemas.route import Route, RouteCandidate, RouteSegment


class RouteAssembler:
    """Builds Route objects with 1-based segment numbering."""

    def assemble(
        self,
        candidates: Sequence[RouteCandidate],
        graph: TransportationGraph,
    ) -> List[Route]:
        """
        Convert candidates to routes, preserving candidate order.

        Args:
            candidates: Accepted leg sequences from a composer.
            graph: Graph the candidates were composed from, used to
                resolve endpoint Location payloads.

        Returns:
            One Route per candidate.

        Raises:
            LocationNotFoundError: If a leg endpoint is missing from the graph.
        """
        return [self.assemble_one(candidate, graph) for candidate in candidates]

    def assemble_one(
        self,
        candidate: RouteCandidate,
        graph: TransportationGraph,
    ) -> Route:
        segments = [
            RouteSegment(
                segment_order=order,
                transportation_id=leg.leg_id,
                origin_location=_resolve(graph, leg.origin_id),
                destination_location=_resolve(graph, leg.destination_id),
                transportation_type=leg.transportation_type,
            )
            for order, leg in enumerate(candidate.legs, start=1)
        ]
        return Route.from_segments(segments)


def _resolve(graph: TransportationGraph, location_id: str) -> Location:
    location = graph.get_location(location_id)
    if location is None:
        raise LocationNotFoundError("Location", "id", location_id)
    return location
