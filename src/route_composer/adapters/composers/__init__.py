"""
Route composition adapters.
"""

from src.route_composer.adapters.composers.slot_composer import SlotRouteComposer

__all__ = [
    "SlotRouteComposer",
]
