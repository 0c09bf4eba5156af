"""
Route result cache.

Bounded, thread-safe LRU of search results. Keys include the graph
version, so any change to locations or legs produces a different key and
stale results can never be served.
"""

import logging
import threading
from collections import OrderedDict
from datetime import date
from typing import List, Optional, Tuple

from src.route_composer.schemas.route import Route

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str, date]


class RouteResultCache:
    """
    LRU cache keyed by (graph version, origin id, destination id, date).

    Stored lists are copied on the way in and out so callers cannot
    mutate cached results. Routes themselves are frozen.

    Attributes:
        _max_entries: Capacity; 0 disables caching.
        _entries: Ordered mapping, least recently used first.
    """

    def __init__(self, max_entries: int = 1024) -> None:
        if max_entries < 0:
            raise ValueError(f"max_entries must be >= 0, got {max_entries}")
        self._max_entries = max_entries
        self._entries: "OrderedDict[CacheKey, Tuple[Route, ...]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(
        graph_version: str,
        origin_id: str,
        destination_id: str,
        travel_date: date,
    ) -> CacheKey:
        return (graph_version, origin_id, destination_id, travel_date)

    def get(self, key: CacheKey) -> Optional[List[Route]]:
        """Cached routes or None on miss."""
        with self._lock:
            routes = self._entries.get(key)
            if routes is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return list(routes)

    def put(self, key: CacheKey, routes: List[Route]) -> None:
        """Store routes, evicting the least recently used entry when full."""
        if self._max_entries == 0:
            return
        with self._lock:
            self._entries[key] = tuple(routes)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop every cached result."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug("Route result cache cleared (%d entries)", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def enabled(self) -> bool:
        return self._max_entries > 0
