"""
Transportation Data Provider port interface.

Defines the abstract contract for the persistence collaborator that
supplies locations and transportation legs. Implementations handle the
specifics of different backends (SQLite, in-memory DataFrames, etc.).
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List

from src.route_composer.schemas.location import LocationDataFrame
from src.route_composer.schemas.transportation import TransportationDataFrame

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class TransportationDataProvider(ABC):
    """
    Abstract interface for transportation data providers.

    Providers return validated DataFrames directly. Schema validation
    happens at the boundary (in the provider), not per-row.

    Only non-deleted locations and legs are returned, and a leg is only
    returned when both of its endpoint locations are returned too.

    Providers that accept writes must call _notify_changed() after every
    write so caches built on top of them can be invalidated.

    Implementations:
    - SQLiteTransportationProvider: SQL -> DataFrame from a SQLite database
    - DataFrameTransportationProvider: In-memory DataFrames for tests and demos
    """

    def __init__(self) -> None:
        self._listeners: List[ChangeListener] = []
        self._listeners_lock = threading.Lock()

    @abstractmethod
    def get_locations_df(self) -> LocationDataFrame:
        """
        Return all live locations as a validated DataFrame.

        Returns:
            DataFrame validated against LocationSchema.
        """
        ...

    @abstractmethod
    def get_transportations_df(self) -> TransportationDataFrame:
        """
        Return all live transportation legs as a validated DataFrame.

        Returns:
            DataFrame validated against TransportationSchema.

        Raises:
            pandera.errors.SchemaError: If data fails validation.
            ConnectionError: If data source is unavailable.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Human-readable name of this data provider.

        Returns:
            Provider identifier (e.g., "SQLite", "In-memory DataFrames").
        """
        ...

    @property
    def is_available(self) -> bool:
        """
        Check if the data source is currently available.

        Default implementation returns True. Override for providers
        that need connection health checks.
        """
        return True

    def add_change_listener(self, listener: ChangeListener) -> None:
        """Register a callback fired after any location or leg write."""
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify_changed(self) -> None:
        """Fire every registered change listener."""
        with self._listeners_lock:
            listeners = list(self._listeners)
        logger.debug("%s changed, notifying %d listener(s)", self.name, len(listeners))
        for listener in listeners:
            listener()
