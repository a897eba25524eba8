"""Route group exports."""

from . import health, places, routes

__all__ = ["health", "places", "routes"]
