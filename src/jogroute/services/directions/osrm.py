"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import GeoPoint, Leg, RouteResult, Step
from ..synthesis.errors import ProviderError, ProviderErrorKind
from .base import decode_polyline, format_distance, format_duration

logger = logging.getLogger(__name__)

_CODE_KINDS = {
    "NoRoute": ProviderErrorKind.NO_ROUTE_FOUND,
    "NoSegment": ProviderErrorKind.INVALID_WAYPOINT,
    "InvalidInput": ProviderErrorKind.INVALID_WAYPOINT,
    "InvalidQuery": ProviderErrorKind.INVALID_WAYPOINT,
    "InvalidValue": ProviderErrorKind.INVALID_WAYPOINT,
    "InvalidOptions": ProviderErrorKind.INVALID_WAYPOINT,
    "TooBig": ProviderErrorKind.INVALID_WAYPOINT,
}

# OSRM only honours exclude=motorway on car profiles; foot graphs carry no motorways
_EXCLUDE_CAPABLE_PROFILES = ("car", "driving")


def describe_step(step: dict) -> str:
    """Build a readable instruction from an OSRM maneuver."""
    maneuver = step.get("maneuver", {})
    kind = maneuver.get("type", "continue")
    modifier = maneuver.get("modifier")
    name = step.get("name") or ""

    if kind == "depart":
        text = "Head out"
    elif kind == "arrive":
        return "Arrive at destination" if not name else f"Arrive at {name}"
    elif kind in ("turn", "end of road", "fork") and modifier:
        text = f"Turn {modifier}"
    elif kind in ("roundabout", "rotary"):
        exit_number = maneuver.get("exit")
        text = f"At the roundabout take exit {exit_number}" if exit_number else "Enter the roundabout"
    elif modifier:
        text = f"Continue {modifier}"
    else:
        text = "Continue"
    return f"{text} onto {name}" if name else text


class OSRMDirectionsClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._client = client or httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0))

    def close(self) -> None:
        self._client.close()

    def route(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        waypoints: Sequence[GeoPoint],
        travel_mode: str = "walking",
        avoid_highways: bool = True,
    ) -> RouteResult:
        """Get a route through ``origin -> *waypoints -> destination``.

        ``travel_mode`` is fixed by the configured profile; OSRM serves one
        profile per endpoint.
        """
        coordinates = [origin, *waypoints, destination]
        # OSRM route endpoint expects coordinates as "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{point.longitude},{point.latitude}" for point in coordinates)
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "true",
        }
        if avoid_highways and self.profile.startswith(_EXCLUDE_CAPABLE_PROFILES):
            params["exclude"] = "motorway"
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        response = self._client.get(url, params=params)
        if response.status_code == 429:
            raise ProviderError(ProviderErrorKind.QUOTA_EXCEEDED, "OSRM rate limit exceeded")
        if response.status_code >= 500:
            raise ProviderError(ProviderErrorKind.NETWORK, f"OSRM returned HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(ProviderErrorKind.NETWORK, "OSRM returned malformed JSON") from exc

        code = data.get("code")
        if code != "Ok":
            error_msg = data.get("message", "Unknown OSRM route error")
            raise ProviderError(_CODE_KINDS.get(code, ProviderErrorKind.INVALID_WAYPOINT), error_msg)
        if not data.get("routes"):
            raise ProviderError(ProviderErrorKind.NO_ROUTE_FOUND, "OSRM returned no routes")

        return parse_route(data["routes"][0], origin, destination, waypoints)


def parse_route(
    route: dict,
    origin: GeoPoint,
    destination: GeoPoint,
    waypoints: Sequence[GeoPoint],
) -> RouteResult:
    stops = [origin, *waypoints, destination]
    legs = []
    for index, leg in enumerate(route.get("legs", [])):
        distance = float(leg.get("distance", 0.0))
        duration = float(leg.get("duration", 0.0))
        steps = [
            Step(
                instruction=describe_step(step),
                distance_text=format_distance(step.get("distance", 0.0)),
                duration_text=format_duration(step.get("duration", 0.0)),
            )
            for step in leg.get("steps", [])
        ]
        legs.append(
            Leg(
                distance_meters=distance,
                duration_seconds=duration,
                steps=steps,
                start_location=stops[index] if index < len(stops) else None,
                end_location=stops[index + 1] if index + 1 < len(stops) else None,
                distance_text=format_distance(distance),
                duration_text=format_duration(duration),
            )
        )

    geometry = route.get("geometry")
    return RouteResult(
        legs=legs,
        origin=origin,
        destination=destination,
        waypoints=tuple(waypoints),
        geometry=decode_polyline(geometry) if isinstance(geometry, str) else [],
    )


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health with a minimal route request.

    Public OSRM endpoints may not have a /health endpoint.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
