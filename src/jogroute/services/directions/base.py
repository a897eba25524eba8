"""Directions provider contract and shared helpers."""

from __future__ import annotations

from typing import Protocol, Sequence

from ...models.domain import GeoPoint, RouteResult


class DirectionsProvider(Protocol):
    """Anything that can compute a route through ordered waypoints.

    Implementations raise ``ProviderError`` on failure and never reorder
    waypoints.
    """

    def route(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        waypoints: Sequence[GeoPoint],
        travel_mode: str,
        avoid_highways: bool,
    ) -> RouteResult:
        ...


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{int(round(meters))} m"
    return f"{meters / 1000:.1f} km"


def format_duration(seconds: float) -> str:
    minutes = int(round(seconds / 60))
    if minutes < 1:
        return "<1 min"
    if minutes < 60:
        return f"{minutes} min" if minutes == 1 else f"{minutes} mins"
    hours, minutes = divmod(minutes, 60)
    hour_label = "hour" if hours == 1 else "hours"
    if not minutes:
        return f"{hours} {hour_label}"
    return f"{hours} {hour_label} {minutes} min" + ("" if minutes == 1 else "s")


def decode_polyline(polyline: str, precision: int = 5) -> list[GeoPoint]:
    """Decode an encoded polyline string into points.

    Google and OSRM both emit this format for route overviews.
    """
    factor = 10 ** precision
    points: list[GeoPoint] = []
    index = 0
    lat = 0
    lon = 0

    def _next_delta() -> int:
        nonlocal index
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1F) << shift
            shift += 5
            if b < 0x20:
                break
        return ~(result >> 1) if (result & 1) else (result >> 1)

    while index < len(polyline):
        lat += _next_delta()
        lon += _next_delta()
        points.append(GeoPoint(lat / factor, lon / factor))

    return points
