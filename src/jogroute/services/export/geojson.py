"""GeoJSON export utilities for map front ends."""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence

from ...models.domain import GeoPoint, RouteResult, SynthesisResult

ROUTE_COLOR = "#3b82f6"


class MapRenderer(Protocol):
    def render(self, result: SynthesisResult) -> Any:
        ...


def linestring_to_wkt(coordinates: Sequence[GeoPoint]) -> str:
    """Convert route points to a WKT LINESTRING (WKT uses lon lat order)."""
    if not coordinates or len(coordinates) < 2:
        raise ValueError("LineString must have at least 2 coordinates")
    coord_pairs = [f"{point.longitude} {point.latitude}" for point in coordinates]
    return f"LINESTRING({','.join(coord_pairs)})"


def _point_feature(point: GeoPoint, role: str, **properties: Any) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [point.longitude, point.latitude]},
        "properties": {"role": role, **properties},
    }


def route_line(route: RouteResult) -> List[GeoPoint]:
    """Route geometry, or the stop sequence when the provider sent none."""
    if len(route.geometry) >= 2:
        return list(route.geometry)
    return [route.origin, *route.waypoints, route.destination]


def route_to_feature_collection(route: RouteResult, properties: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Build a FeatureCollection with the route line and its start, end, and waypoint markers."""
    line = route_line(route)
    features: List[Dict[str, Any]] = [
        {
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                # GeoJSON uses lon,lat order
                "coordinates": [[point.longitude, point.latitude] for point in line],
            },
            "properties": {
                "role": "route",
                "distance_km": round(route.total_distance_km, 3),
                "stroke": ROUTE_COLOR,
                "stroke-width": 5,
                "stroke-opacity": 0.8,
                **(properties or {}),
            },
        },
        _point_feature(route.origin, "start"),
    ]
    for index, waypoint in enumerate(route.waypoints, start=1):
        features.append(_point_feature(waypoint, "waypoint", sequence=index))
    if route.destination != route.origin:
        features.append(_point_feature(route.destination, "end"))
    return {"type": "FeatureCollection", "features": features}


class GeoJSONRenderer:
    """MapRenderer that hands the winning route to a web map as GeoJSON."""

    def render(self, result: SynthesisResult) -> Dict[str, Any]:
        return route_to_feature_collection(
            result.route,
            properties={
                "estimated_distance": result.estimated_distance,
                "unit": result.unit.value,
                "outcome": result.outcome.value,
            },
        )
