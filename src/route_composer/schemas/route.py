"""
Route schemas.

RouteCandidate is the search-internal leg sequence produced by composers.
Route and RouteSegment are the externally visible result types built by
the route assembler.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from src.route_composer.exceptions import InvalidRouteError
from src.route_composer.schemas.location import Location
from src.route_composer.schemas.transportation import (
    TransportationLeg,
    TransportationType,
)

MAX_ROUTE_LEGS = 3


class RouteShape(str, Enum):
    """Which optional transfer slots around the flight a route fills."""

    DIRECT = "DIRECT"
    BEFORE_TRANSFER = "BEFORE_TRANSFER"
    AFTER_TRANSFER = "AFTER_TRANSFER"
    BOTH_TRANSFERS = "BOTH_TRANSFERS"

    @classmethod
    def of(cls, has_before: bool, has_after: bool) -> "RouteShape":
        if has_before and has_after:
            return cls.BOTH_TRANSFERS
        if has_before:
            return cls.BEFORE_TRANSFER
        if has_after:
            return cls.AFTER_TRANSFER
        return cls.DIRECT


ALL_SHAPES = frozenset(RouteShape)


@dataclass(frozen=True)
class RouteCandidate:
    """
    Ordered sequence of 1 to 3 legs satisfying the composition rule.

    Construction fails with InvalidRouteError when:
    - the sequence is empty or longer than MAX_ROUTE_LEGS
    - consecutive legs do not chain
    - there is not exactly one flight
    - more than one ground leg sits on either side of the flight
    - a location repeats
    """

    legs: tuple[TransportationLeg, ...]

    def __post_init__(self) -> None:
        legs = self.legs
        if not legs:
            raise InvalidRouteError("Route must have at least one segment")
        if len(legs) > MAX_ROUTE_LEGS:
            raise InvalidRouteError(
                f"Route cannot have more than {MAX_ROUTE_LEGS} segments, got {len(legs)}"
            )

        for i in range(len(legs) - 1):
            if legs[i].destination_id != legs[i + 1].origin_id:
                raise InvalidRouteError(
                    f"Route segments are not connected: segment {i + 1} ends at "
                    f"'{legs[i].destination_id}' but segment {i + 2} starts at "
                    f"'{legs[i + 1].origin_id}'"
                )

        flights = [leg for leg in legs if leg.is_flight]
        if len(flights) != 1:
            raise InvalidRouteError(
                f"Route must have exactly one flight segment, got {len(flights)}"
            )

        flight_index = legs.index(flights[0])
        if flight_index > 1 or len(legs) - flight_index > 2:
            raise InvalidRouteError(
                "Route allows at most one ground transfer on each side of the flight"
            )

        stops = self.location_ids
        if len(set(stops)) != len(stops):
            raise InvalidRouteError(f"Route revisits a location: {' -> '.join(stops)}")

    @property
    def flight_index(self) -> int:
        """Zero-based position of the flight leg."""
        for i, leg in enumerate(self.legs):
            if leg.is_flight:
                return i
        raise InvalidRouteError("Route has no flight segment")

    @property
    def flight(self) -> TransportationLeg:
        return self.legs[self.flight_index]

    @property
    def has_before_flight_transfer(self) -> bool:
        return self.flight_index > 0

    @property
    def has_after_flight_transfer(self) -> bool:
        return self.flight_index < len(self.legs) - 1

    @property
    def shape(self) -> RouteShape:
        return RouteShape.of(
            self.has_before_flight_transfer, self.has_after_flight_transfer
        )

    @property
    def location_ids(self) -> List[str]:
        """Ordered list of every location visited, origin first."""
        stops = [self.legs[0].origin_id]
        for leg in self.legs:
            stops.append(leg.destination_id)
        return stops

    @classmethod
    def from_slots(
        cls,
        before: Optional[TransportationLeg],
        flight: TransportationLeg,
        after: Optional[TransportationLeg],
    ) -> "RouteCandidate":
        """Build a candidate from the three slots, skipping empty ones."""
        legs = tuple(leg for leg in (before, flight, after) if leg is not None)
        return cls(legs=legs)


@dataclass(frozen=True)
class RouteSegment:
    """
    Immutable representation of one leg within a route.

    segment_order is 1-based.
    """

    segment_order: int
    transportation_id: str
    origin_location: Location
    destination_location: Location
    transportation_type: TransportationType


@dataclass(frozen=True)
class Route:
    """
    Immutable representation of a complete route.

    This is the primary output type of a route search.
    """

    segments: tuple[RouteSegment, ...]

    @property
    def total_segments(self) -> int:
        return len(self.segments)

    @property
    def flight_segment(self) -> RouteSegment:
        for seg in self.segments:
            if seg.transportation_type is TransportationType.FLIGHT:
                return seg
        raise ValueError("Route has no flight segment")

    @property
    def has_before_flight_transfer(self) -> bool:
        """True when a ground transfer precedes the flight."""
        return self.segments[0].transportation_type.is_ground

    @property
    def has_after_flight_transfer(self) -> bool:
        """True when a ground transfer follows the flight."""
        return self.segments[-1].transportation_type.is_ground

    @property
    def origin(self) -> Location:
        if not self.segments:
            raise ValueError("Route has no segments")
        return self.segments[0].origin_location

    @property
    def destination(self) -> Location:
        if not self.segments:
            raise ValueError("Route has no segments")
        return self.segments[-1].destination_location

    @property
    def location_codes(self) -> List[str]:
        """Ordered location codes, e.g. ['TAKSIM', 'IST', 'LHR']."""
        if not self.segments:
            return []
        codes = [self.segments[0].origin_location.location_code]
        for seg in self.segments:
            codes.append(seg.destination_location.location_code)
        return codes

    @classmethod
    def from_segments(cls, segments: Sequence[RouteSegment]) -> "Route":
        """
        Factory method to create a Route from segments.

        Raises:
            ValueError: If segments is empty.
        """
        if not segments:
            raise ValueError("Route must have at least one segment")
        return cls(segments=tuple(segments))
