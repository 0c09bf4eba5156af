"""
Application layer for the route composer.

This layer provides the public API for route searches. It acts as a
facade, handling dependency initialization and providing a simple
interface for consumers.
"""

from src.route_composer.application.find_routes import FindRoutes

__all__ = ["FindRoutes"]
