"""Directions provider clients."""

from .base import DirectionsProvider, decode_polyline
from .google import GoogleDirectionsClient
from .osrm import OSRMDirectionsClient
from .query import RouteQueryClient, build_provider

__all__ = [
    "DirectionsProvider",
    "GoogleDirectionsClient",
    "OSRMDirectionsClient",
    "RouteQueryClient",
    "build_provider",
    "decode_polyline",
]
