"""
Route Search Service - domain orchestrator for route searches.

Coordinates the interaction between:
- TransportationGraphRepository (cached graph snapshots)
- RouteComposer (slot enumeration)
- RouteAssembler (presentation)
- RouteResultCache (optional memoisation)
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, List, Optional

from src.route_composer.exceptions import LocationNotFoundError
from src.route_composer.schemas.query import DateLike, RouteQuery
from src.route_composer.schemas.route import Route
from src.route_composer.services.route_assembler import RouteAssembler

if TYPE_CHECKING:
    from src.route_composer.adapters.repositories.route_result_cache import (
        RouteResultCache,
    )
    from src.route_composer.adapters.repositories.transportation_graph_repo import (
        TransportationGraphRepository,
    )
    from src.route_composer.ports.route_composer import RouteComposer

logger = logging.getLogger(__name__)


class RouteSearchService:
    """
    Domain service for finding routes between two locations.

    Orchestrates the search:
    1. Validates and normalizes the query
    2. Retrieves the cached graph snapshot
    3. Resolves origin and destination (NotFound otherwise)
    4. Delegates composition, then assembles routes
    5. Logs performance metrics

    This service is stateless and thread-safe; the result cache guards
    its own state.

    Attributes:
        _graph_repo: Repository providing graph snapshots.
        _composer: Route composition strategy.
        _assembler: Candidate-to-route converter.
        _result_cache: Optional result memoisation.
    """

    def __init__(
        self,
        graph_repo: TransportationGraphRepository,
        composer: RouteComposer,
        assembler: Optional[RouteAssembler] = None,
        result_cache: Optional[RouteResultCache] = None,
    ) -> None:
        self._graph_repo = graph_repo
        self._composer = composer
        self._assembler = assembler or RouteAssembler()
        self._result_cache = result_cache

    def find_routes(
        self,
        origin_id: str,
        destination_id: str,
        travel_date: DateLike,
    ) -> List[Route]:
        """
        Find every valid route from origin to destination on travel_date.

        Args:
            origin_id: Origin location identifier.
            destination_id: Destination location identifier.
            travel_date: Calendar date (date, datetime or 'YYYY-MM-DD').

        Returns:
            Routes in discovery order, possibly empty. Never None.

        Raises:
            ValueError: If an identifier is empty or the date is malformed.
            LocationNotFoundError: If origin or destination is unknown.
            GraphNotInitializedError: If the graph cannot be loaded.
        """
        start_time = time.perf_counter()

        query = RouteQuery.create(
            origin_id=origin_id,
            destination_id=destination_id,
            travel_date=travel_date,
        )

        logger.debug(
            "Finding routes from %s to %s on %s (day %d)",
            query.origin_id,
            query.destination_id,
            query.travel_date,
            query.day_of_week,
        )

        graph_start = time.perf_counter()
        graph = self._graph_repo.get_graph()
        graph_time = time.perf_counter() - graph_start

        origin = graph.get_location(query.origin_id)
        if origin is None:
            raise LocationNotFoundError("Location", "id", query.origin_id)
        destination = graph.get_location(query.destination_id)
        if destination is None:
            raise LocationNotFoundError("Location", "id", query.destination_id)

        if query.is_round_trip_to_self:
            logger.debug("Origin equals destination, no routes possible")
            return []

        cache_key = None
        if self._result_cache is not None and self._result_cache.enabled:
            cache_key = self._result_cache.make_key(
                graph.version,
                query.origin_id,
                query.destination_id,
                query.travel_date,
            )
            cached = self._result_cache.get(cache_key)
            if cached is not None:
                logger.debug("Result cache hit for %s", cache_key)
                return cached

        compose_start = time.perf_counter()
        candidates = self._composer.compose(graph, query)
        compose_time = time.perf_counter() - compose_start

        routes = self._assembler.assemble(candidates, graph)

        if cache_key is not None:
            self._result_cache.put(cache_key, routes)

        total_time = time.perf_counter() - start_time
        logger.info(
            "Found %d route(s) from %s to %s on %s in %.3fms "
            "(graph: %.3fms, compose: %.3fms)",
            len(routes),
            origin.location_code,
            destination.location_code,
            query.travel_date,
            total_time * 1000,
            graph_time * 1000,
            compose_time * 1000,
        )

        return routes

    def clear_cache(self) -> None:
        """Drop memoised results."""
        if self._result_cache is not None:
            self._result_cache.clear()

    @property
    def composer_name(self) -> str:
        """Get name of the underlying composer."""
        return self._composer.name

    @property
    def is_ready(self) -> bool:
        """Check if service is ready to handle requests."""
        return self._graph_repo.is_initialized
