"""Route synthesis endpoints."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from ...models.domain import DistanceUnit, GeoPoint, RouteMode, SynthesisRequest
from ...schemas.synthesis import LatLng, SynthesisRequestModel, SynthesisResponseModel
from ...services.directions.base import DirectionsProvider
from ...services.directions.query import build_provider
from ...services.export.geojson import GeoJSONRenderer, linestring_to_wkt, route_line
from ...services.outputs.directions_formatter import directions_panel, directions_to_text, route_to_json
from ...services.synthesis.errors import InputError, NoRouteFoundError, SynthesisCancelled
from ...services.synthesis.service import RouteSynthesizer
from .places import configured_resolver, resolve_or_fail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


@lru_cache(maxsize=1)
def get_provider() -> DirectionsProvider:
    """Shared directions client; it holds no per-synthesis state."""
    return build_provider()


def configured_provider() -> DirectionsProvider:
    """The shared directions client, or 503 when it cannot be built."""
    try:
        return get_provider()
    except ValueError as exc:
        logger.error(f"Directions provider unavailable: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Directions service is not configured: {exc}",
        ) from exc


def _geo_point(value: Optional[LatLng]) -> Optional[GeoPoint]:
    return GeoPoint(value.lat, value.lng) if value is not None else None


def _build_request(payload: SynthesisRequestModel) -> SynthesisRequest:
    start = _geo_point(payload.start)
    end = _geo_point(payload.end)
    mode = RouteMode(payload.mode)
    if start is None and payload.start_query:
        start = resolve_or_fail(configured_resolver(), payload.start_query)
    if mode is RouteMode.POINT_TO_POINT and end is None and payload.end_query:
        end = resolve_or_fail(configured_resolver(), payload.end_query)
    return SynthesisRequest(
        start=start,
        end=end if mode is RouteMode.POINT_TO_POINT else None,
        target_distance=payload.target_distance,
        unit=DistanceUnit(payload.unit),
        mode=mode,
    )


@router.post("/synthesize", response_model=SynthesisResponseModel, status_code=status.HTTP_200_OK)
def synthesize(payload: SynthesisRequestModel) -> dict:
    try:
        request = _build_request(payload)
        synthesizer = RouteSynthesizer(configured_provider(), random_seed=payload.seed)
        result = synthesizer.synthesize(request)
    except InputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NoRouteFoundError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except SynthesisCancelled as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception(f"Error synthesizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to synthesize route: {str(exc)}",
        ) from exc

    route_json = route_to_json(result.route)
    line = route_line(result.route)
    return {
        "estimated_distance": result.estimated_distance,
        "unit": result.unit.value,
        "mode": result.mode.value,
        "outcome": result.outcome.value,
        "route": {
            "origin": {"lat": result.route.origin.latitude, "lng": result.route.origin.longitude},
            "destination": {"lat": result.route.destination.latitude, "lng": result.route.destination.longitude},
            "waypoints": [{"lat": wp.latitude, "lng": wp.longitude} for wp in result.route.waypoints],
            "total_distance_km": route_json["total_distance_km"],
            "total_duration_seconds": route_json["total_duration_seconds"],
            "wkt": linestring_to_wkt(line) if len(line) >= 2 else None,
        },
        "directions": directions_panel(result.route),
        "directions_text": directions_to_text(result.route),
        "map_overlay": GeoJSONRenderer().render(result),
        "metadata": result.metadata,
    }
