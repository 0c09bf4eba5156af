"""
Configuration module for the route composer.

Loads environment variables (from a .env file when present) and
provides the settings used to wire the search stack.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import FrozenSet, Optional, Tuple

from dotenv import load_dotenv

from src.route_composer.schemas.route import ALL_SHAPES, RouteShape

# Load environment variables from .env file
load_dotenv()

DEFAULT_DB_PATH = "data/routes.db"
DEFAULT_GRAPH_TTL_SECONDS = 3600
DEFAULT_RESULT_CACHE_SIZE = 1024
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class RouterSettings:
    """
    Search stack settings.

    Attributes:
        db_path: SQLite database path (ROUTES_DB_PATH).
        graph_ttl: Graph snapshot lifetime (ROUTES_GRAPH_TTL_SECONDS).
        result_cache_size: LRU capacity, 0 disables (ROUTES_RESULT_CACHE_SIZE).
        allowed_shapes: Route shapes returned (ROUTES_ALLOWED_SHAPES).
        cors_origins: Origins allowed by the HTTP layer (ROUTES_CORS_ORIGINS).
        log_level: Root log level name (LOG_LEVEL).
    """

    db_path: str = DEFAULT_DB_PATH
    graph_ttl: timedelta = timedelta(seconds=DEFAULT_GRAPH_TTL_SECONDS)
    result_cache_size: int = DEFAULT_RESULT_CACHE_SIZE
    allowed_shapes: FrozenSet[RouteShape] = ALL_SHAPES
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.graph_ttl.total_seconds() <= 0:
            raise ValueError(f"graph_ttl must be positive, got {self.graph_ttl}")
        if self.result_cache_size < 0:
            raise ValueError(
                f"result_cache_size must be >= 0, got {self.result_cache_size}"
            )
        if not self.allowed_shapes:
            raise ValueError("allowed_shapes cannot be empty")

    @classmethod
    def from_env(cls) -> "RouterSettings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        return cls(
            db_path=os.getenv("ROUTES_DB_PATH", DEFAULT_DB_PATH),
            graph_ttl=timedelta(
                seconds=_get_int("ROUTES_GRAPH_TTL_SECONDS", DEFAULT_GRAPH_TTL_SECONDS)
            ),
            result_cache_size=_get_int(
                "ROUTES_RESULT_CACHE_SIZE", DEFAULT_RESULT_CACHE_SIZE
            ),
            allowed_shapes=parse_shapes(os.getenv("ROUTES_ALLOWED_SHAPES")),
            cors_origins=_get_list("ROUTES_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def parse_shapes(value: Optional[str]) -> FrozenSet[RouteShape]:
    """
    Parse a comma-separated list of shape names.

    Empty or missing means all shapes.

    Raises:
        ValueError: On an unknown shape name.
    """
    if value is None or not value.strip():
        return ALL_SHAPES
    shapes = set()
    for token in value.split(","):
        token = token.strip().upper()
        if not token:
            continue
        try:
            shapes.add(RouteShape(token))
        except ValueError:
            valid = ", ".join(s.value for s in RouteShape)
            raise ValueError(
                f"Unknown route shape '{token}'. Expected one of: {valid}"
            ) from None
    return frozenset(shapes)


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


def _get_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for console output."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
