"""HTTP client for the Google Directions web service."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import GeoPoint, Leg, RouteResult, Step
from ..synthesis.errors import ProviderError, ProviderErrorKind
from .base import decode_polyline

logger = logging.getLogger(__name__)

# Directions API "status" values that are not OK
_STATUS_KINDS = {
    "ZERO_RESULTS": ProviderErrorKind.NO_ROUTE_FOUND,
    "NOT_FOUND": ProviderErrorKind.INVALID_WAYPOINT,
    "INVALID_REQUEST": ProviderErrorKind.INVALID_WAYPOINT,
    "MAX_WAYPOINTS_EXCEEDED": ProviderErrorKind.INVALID_WAYPOINT,
    "MAX_ROUTE_LENGTH_EXCEEDED": ProviderErrorKind.INVALID_WAYPOINT,
    "OVER_QUERY_LIMIT": ProviderErrorKind.QUOTA_EXCEEDED,
    "OVER_DAILY_LIMIT": ProviderErrorKind.QUOTA_EXCEEDED,
    "REQUEST_DENIED": ProviderErrorKind.QUOTA_EXCEEDED,
    "UNKNOWN_ERROR": ProviderErrorKind.NETWORK,
}


def _latlng(point: GeoPoint) -> str:
    return f"{point.latitude},{point.longitude}"


def _point(payload: dict | None) -> GeoPoint | None:
    if not payload:
        return None
    return GeoPoint(float(payload["lat"]), float(payload["lng"]))


def kind_for_status_code(status_code: int) -> ProviderErrorKind:
    if status_code == 429:
        return ProviderErrorKind.QUOTA_EXCEEDED
    if status_code >= 500:
        return ProviderErrorKind.NETWORK
    return ProviderErrorKind.INVALID_WAYPOINT


class GoogleDirectionsClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.base_url = base_url or settings.google_directions_url
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        # httpx.Client is thread-safe, so one pooled client serves every trial
        self._client = client or httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0))

    def close(self) -> None:
        self._client.close()

    def _params(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        waypoints: Sequence[GeoPoint],
        travel_mode: str,
        avoid_highways: bool,
    ) -> dict:
        params = {
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "mode": travel_mode,
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(["optimize:false", *(_latlng(wp) for wp in waypoints)])
        if avoid_highways:
            params["avoid"] = "highways"
        return params

    def route(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        waypoints: Sequence[GeoPoint],
        travel_mode: str = "walking",
        avoid_highways: bool = True,
    ) -> RouteResult:
        params = self._params(origin, destination, waypoints, travel_mode, avoid_highways)
        response = self._client.get(self.base_url, params=params)
        if response.status_code != 200:
            raise ProviderError(
                kind_for_status_code(response.status_code),
                f"Google Directions returned HTTP {response.status_code}",
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(ProviderErrorKind.NETWORK, "Google Directions returned malformed JSON") from exc

        status = data.get("status", "UNKNOWN_ERROR")
        if status != "OK":
            message = data.get("error_message") or status
            raise ProviderError(_STATUS_KINDS.get(status, ProviderErrorKind.NETWORK), message)
        if not data.get("routes"):
            raise ProviderError(ProviderErrorKind.NO_ROUTE_FOUND, "Google Directions returned no routes")

        return parse_route(data["routes"][0], origin, destination, waypoints)


def parse_route(
    route: dict,
    origin: GeoPoint,
    destination: GeoPoint,
    waypoints: Sequence[GeoPoint],
) -> RouteResult:
    """Normalize one entry of a Directions API ``routes`` array."""
    legs = []
    for leg in route.get("legs", []):
        steps = [
            Step(
                instruction=step.get("html_instructions", ""),
                distance_text=step.get("distance", {}).get("text", ""),
                duration_text=step.get("duration", {}).get("text", ""),
            )
            for step in leg.get("steps", [])
        ]
        legs.append(
            Leg(
                distance_meters=float(leg["distance"]["value"]),
                duration_seconds=float(leg["duration"]["value"]),
                steps=steps,
                start_location=_point(leg.get("start_location")),
                end_location=_point(leg.get("end_location")),
                distance_text=leg["distance"].get("text", ""),
                duration_text=leg["duration"].get("text", ""),
            )
        )

    overview = route.get("overview_polyline", {}).get("points")
    return RouteResult(
        legs=legs,
        origin=origin,
        destination=destination,
        waypoints=tuple(waypoints),
        geometry=decode_polyline(overview) if overview else [],
    )


def check_health(api_key: str | None = None) -> bool:
    """Issue a tiny walking query to confirm the key and endpoint work."""
    key = api_key or settings.google_maps_api_key
    if not key:
        return False
    try:
        client = GoogleDirectionsClient(api_key=key, timeout=5.0)
        try:
            client.route(GeoPoint(52.517037, 13.388860), GeoPoint(52.516, 13.3777), [])
        finally:
            client.close()
        return True
    except (ProviderError, httpx.HTTPError):
        return False
