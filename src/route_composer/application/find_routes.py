"""
FindRoutes Use Case - Public API for route searches.

This module provides the main entry point for the route composer.
It acts as a Facade/Factory, handling dependency initialization and
providing a clean interface for consumers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from src.route_composer.adapters.composers.slot_composer import SlotRouteComposer
from src.route_composer.adapters.data_providers.sqlite_provider import (
    SQLiteTransportationProvider,
)
from src.route_composer.adapters.repositories.route_result_cache import (
    RouteResultCache,
)
from src.route_composer.adapters.repositories.transportation_graph_repo import (
    InMemoryTransportationGraphCache,
    TransportationGraphRepository,
)
from src.route_composer.config import RouterSettings
from src.route_composer.exceptions import LocationNotFoundError
from src.route_composer.ports.route_composer import RouteComposer
from src.route_composer.ports.transportation_data_provider import (
    TransportationDataProvider,
)
from src.route_composer.schemas.location import Location
from src.route_composer.schemas.query import DateLike
from src.route_composer.schemas.route import Route
from src.route_composer.services.route_assembler import RouteAssembler
from src.route_composer.services.route_search_service import RouteSearchService

logger = logging.getLogger(__name__)


class FindRoutes:
    """
    Public API for finding transfer routes.

    Handles dependency initialization with defaults taken from
    RouterSettings and provides a simple interface for searches.

    Example usage:
        >>> router = FindRoutes(db_path="data/routes.db")
        >>> routes = router.search(taksim_id, wembley_id, date(2025, 11, 28))
        >>> for route in routes:
        ...     print(" -> ".join(route.location_codes))

    Attributes:
        _service: Underlying RouteSearchService.
        _graph_repo: Graph repository (for invalidation and shutdown).
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        data_provider: Optional[TransportationDataProvider] = None,
        composer: Optional[RouteComposer] = None,
        settings: Optional[RouterSettings] = None,
        auto_refresh: bool = True,
    ) -> None:
        """
        Initialize the router with optional custom dependencies.

        Args:
            db_path: SQLite database path. Defaults to settings.db_path.
            data_provider: Custom data provider. If None, uses
                SQLiteTransportationProvider.
            composer: Custom composer. If None, uses SlotRouteComposer with
                settings.allowed_shapes.
            settings: Settings. Defaults to RouterSettings.from_env().
            auto_refresh: If True, stale graphs are rebuilt in the background.
        """
        self._settings = settings or RouterSettings.from_env()

        if data_provider is not None:
            self._data_provider = data_provider
        else:
            db_path = db_path or self._settings.db_path
            self._data_provider = SQLiteTransportationProvider(db_path=str(db_path))

        self._cache = InMemoryTransportationGraphCache(ttl=self._settings.graph_ttl)
        self._graph_repo = TransportationGraphRepository(
            data_provider=self._data_provider,
            cache=self._cache,
            auto_refresh=auto_refresh,
        )

        self._composer = composer or SlotRouteComposer(
            allowed_shapes=self._settings.allowed_shapes
        )
        self._result_cache = RouteResultCache(
            max_entries=self._settings.result_cache_size
        )
        self._data_provider.add_change_listener(self._result_cache.clear)

        self._service = RouteSearchService(
            graph_repo=self._graph_repo,
            composer=self._composer,
            assembler=RouteAssembler(),
            result_cache=self._result_cache,
        )

        logger.info(
            "FindRoutes initialized with %s over %s",
            self._composer.name,
            self._data_provider.name,
        )

    def search(
        self,
        origin_id: str,
        destination_id: str,
        travel_date: DateLike,
    ) -> List[Route]:
        """
        Search for routes between two locations on a date.

        Args:
            origin_id: Origin location identifier.
            destination_id: Destination location identifier.
            travel_date: Calendar date (date, datetime or 'YYYY-MM-DD').

        Returns:
            Routes in discovery order, possibly empty.

        Raises:
            LocationNotFoundError: If origin or destination is unknown.

        Example:
            >>> router.search("loc-ist", "loc-adb", date(2025, 11, 26))
        """
        return self._service.find_routes(
            origin_id=origin_id,
            destination_id=destination_id,
            travel_date=travel_date,
        )

    def get_locations(self) -> Tuple[Location, ...]:
        """All live locations ordered by display order, then code."""
        return self._graph_repo.get_graph().ordered_locations

    def get_location(self, location_id: str) -> Location:
        """
        Look up one location.

        Raises:
            LocationNotFoundError: If the id is unknown.
        """
        location = self._graph_repo.get_graph().get_location(location_id)
        if location is None:
            raise LocationNotFoundError("Location", "id", location_id)
        return location

    @property
    def is_ready(self) -> bool:
        """Check if the router is ready to handle requests."""
        return self._service.is_ready

    @property
    def composer_name(self) -> str:
        """Get the name of the composer being used."""
        return self._service.composer_name

    @property
    def data_provider(self) -> TransportationDataProvider:
        return self._data_provider

    def invalidate(self) -> None:
        """Drop the graph snapshot and memoised results."""
        self._graph_repo.invalidate()
        self._service.clear_cache()

    def refresh_data(self) -> None:
        """Force a background refresh of the graph snapshot."""
        self._graph_repo.force_refresh()

    def shutdown(self) -> None:
        """
        Clean shutdown of the router.

        Stops background threads and closes database connections.
        """
        self._data_provider.remove_change_listener(self._result_cache.clear)
        self._graph_repo.shutdown()
        if hasattr(self._data_provider, "close"):
            self._data_provider.close()
        logger.info("FindRoutes shutdown complete")

    def __enter__(self) -> "FindRoutes":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit with cleanup."""
        self.shutdown()
