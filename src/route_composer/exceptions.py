"""
Custom exceptions for the route composer.

Provides a hierarchy of exceptions for clear error handling of
route searches. Empty search results are never signalled with
an exception.
"""

from typing import Any, Iterable


class RouteComposerError(Exception):
    """Base exception for all route composer errors."""

    pass


class LocationNotFoundError(RouteComposerError):
    """Raised when a query identifier does not resolve to a known location."""

    def __init__(self, resource: str, field: str, value: Any) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        message = f"{resource} not found with {field}: '{value}'"
        super().__init__(message)


class DataIntegrityError(RouteComposerError):
    """Base exception for persisted data that breaks a write-time invariant."""

    pass


class InvalidOperatingDaysError(DataIntegrityError):
    """Raised when a leg's operating days are empty, out of range or duplicated."""

    def __init__(self, value: Any, reason: str, leg_id: str | None = None) -> None:
        self.value = value
        self.reason = reason
        self.leg_id = leg_id
        prefix = f"Leg '{leg_id}': " if leg_id else ""
        message = f"{prefix}invalid operating days {value!r}: {reason}"
        super().__init__(message)


class SelfLoopLegError(DataIntegrityError):
    """Raised when a leg starts and ends at the same location."""

    def __init__(self, leg_ids: Iterable[str]) -> None:
        self.leg_ids = tuple(leg_ids)
        joined = ", ".join(self.leg_ids)
        message = f"Legs must not loop to their own origin: {joined}"
        super().__init__(message)


class InvalidRouteError(RouteComposerError):
    """Raised when a leg sequence breaks the one-flight composition rule."""

    pass


class DuplicateResourceError(RouteComposerError):
    """Raised when a write would repeat a value that must be unique."""

    def __init__(self, resource: str, field: str, value: Any) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        message = f"{resource} already exists with {field}: '{value}'"
        super().__init__(message)


class LocationInUseError(RouteComposerError):
    """Raised when deleting a location that live legs still start or end at."""

    def __init__(self, location_name: str) -> None:
        self.location_name = location_name
        message = (
            f"Cannot delete location '{location_name}' because it is referenced "
            "by one or more active transportations. Please delete or modify "
            "the related transportations first."
        )
        super().__init__(message)
