"""
Domain services for the route composer.

Services orchestrate the interaction between ports (repositories,
composers) and domain logic (query validation, result assembly).
"""

from src.route_composer.services.route_assembler import RouteAssembler
from src.route_composer.services.route_search_service import RouteSearchService

__all__ = ["RouteAssembler", "RouteSearchService"]
