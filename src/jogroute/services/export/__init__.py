"""Export services."""

from .geojson import (
    GeoJSONRenderer,
    MapRenderer,
    linestring_to_wkt,
    route_to_feature_collection,
)

__all__ = [
    "GeoJSONRenderer",
    "MapRenderer",
    "linestring_to_wkt",
    "route_to_feature_collection",
]
