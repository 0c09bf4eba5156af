"""
Slot Route Composer - bounded enumeration around a single flight.

A valid route is at most three legs: an optional ground transfer, exactly
one flight, and an optional ground transfer. Instead of a general graph
search, every operating flight is taken in turn and the two transfer
slots around it are filled from the legs adjacent to its endpoints.
"""

import logging
from typing import AbstractSet, List, Optional, Sequence

from src.route_composer.operating_days import operates_on
from src.route_composer.ports.graph_repository import TransportationGraph
from src.route_composer.ports.route_composer import RouteComposer
from src.route_composer.schemas.query import RouteQuery
from src.route_composer.schemas.route import (
    ALL_SHAPES,
    RouteCandidate,
    RouteShape,
)
from src.route_composer.schemas.transportation import TransportationLeg

logger = logging.getLogger(__name__)

# A slot holding None means "no transfer on this side".
_EMPTY_SLOT: Sequence[Optional[TransportationLeg]] = (None,)


class SlotRouteComposer(RouteComposer):
    """
    Three-slot composer: [ground] -> FLIGHT -> [ground].

    For each flight F operating on the travel date, in graph order:
    - the before slot is empty when F departs from the query origin,
      otherwise it holds every operating ground leg origin -> F.origin
    - the after slot is empty when F lands at the query destination,
      otherwise it holds every operating ground leg F.destination -> destination
    - each (before, after) pairing without a repeated location is accepted

    Ground legs between the same two locations fan out into separate
    candidates. Because legs never loop to their own origin and routes
    never revisit a location, each flight fits exactly one shape, so no
    tie-break between shapes is needed.

    Attributes:
        _allowed_shapes: Shapes that may be returned.
    """

    def __init__(self, allowed_shapes: AbstractSet[RouteShape] = ALL_SHAPES) -> None:
        """
        Initialize the composer.

        Args:
            allowed_shapes: Route shapes to accept. Defaults to all four.

        Raises:
            ValueError: If allowed_shapes is empty.
        """
        if not allowed_shapes:
            raise ValueError("allowed_shapes must contain at least one shape")
        self._allowed_shapes = frozenset(RouteShape(s) for s in allowed_shapes)

    @property
    def name(self) -> str:
        """Composer identifier."""
        return "Three-Slot Composer"

    @property
    def allowed_shapes(self) -> frozenset:
        return self._allowed_shapes

    def compose(
        self,
        graph: TransportationGraph,
        query: RouteQuery,
    ) -> List[RouteCandidate]:
        """
        Enumerate every admissible candidate for the query.

        Args:
            graph: Snapshot of the transportation graph.
            query: Validated origin, destination and travel date.

        Returns:
            Candidates in flight order, then before-leg order, then
            after-leg order. Empty when origin equals destination or
            nothing operates on the date.
        """
        if query.origin_id == query.destination_id:
            return []

        travel_date = query.travel_date
        candidates: List[RouteCandidate] = []

        for flight in graph.flight_legs():
            if not operates_on(flight, travel_date):
                continue

            before_slot = self._before_slot(graph, query, flight)
            if not before_slot:
                continue
            after_slot = self._after_slot(graph, query, flight)
            if not after_slot:
                continue

            shape = RouteShape.of(before_slot[0] is not None, after_slot[0] is not None)
            if shape not in self._allowed_shapes:
                continue

            for before in before_slot:
                for after in after_slot:
                    if _revisits_location(before, flight, after):
                        continue
                    candidates.append(RouteCandidate.from_slots(before, flight, after))

        logger.debug(
            "Composed %d candidate(s) for %s -> %s on %s (day %d)",
            len(candidates),
            query.origin_id,
            query.destination_id,
            travel_date,
            query.day_of_week,
        )
        return candidates

    @staticmethod
    def _before_slot(
        graph: TransportationGraph,
        query: RouteQuery,
        flight: TransportationLeg,
    ) -> Sequence[Optional[TransportationLeg]]:
        """Ground legs origin -> flight origin, or an empty slot."""
        if flight.origin_id == query.origin_id:
            return _EMPTY_SLOT
        return [
            leg
            for leg in graph.legs_from(query.origin_id)
            if leg.is_ground
            and leg.destination_id == flight.origin_id
            and operates_on(leg, query.travel_date)
        ]

    @staticmethod
    def _after_slot(
        graph: TransportationGraph,
        query: RouteQuery,
        flight: TransportationLeg,
    ) -> Sequence[Optional[TransportationLeg]]:
        """Ground legs flight destination -> destination, or an empty slot."""
        if flight.destination_id == query.destination_id:
            return _EMPTY_SLOT
        return [
            leg
            for leg in graph.legs_from(flight.destination_id)
            if leg.is_ground
            and leg.destination_id == query.destination_id
            and operates_on(leg, query.travel_date)
        ]


def _revisits_location(
    before: Optional[TransportationLeg],
    flight: TransportationLeg,
    after: Optional[TransportationLeg],
) -> bool:
    """True if the assembled sequence would pass through a location twice."""
    stops = [before.origin_id] if before is not None else []
    stops.append(flight.origin_id)
    stops.append(flight.destination_id)
    if after is not None:
        stops.append(after.destination_id)
    return len(set(stops)) != len(stops)
