"""Place lookup endpoints."""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query, status

from ...models.domain import GeoPoint
from ...schemas.synthesis import PlaceModel
from ...services.places import GoogleGeocodingResolver, PlaceLookupError, PlaceResolver
from ...services.synthesis.errors import InputError

router = APIRouter(prefix="/places", tags=["places"])


@lru_cache(maxsize=1)
def get_place_resolver() -> PlaceResolver:
    return GoogleGeocodingResolver()


def configured_resolver() -> PlaceResolver:
    """The shared resolver, or 503 when geocoding is not configured."""
    try:
        return get_place_resolver()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Place lookup service is not configured: {exc}",
        ) from exc


def resolve_or_fail(resolver: PlaceResolver, query: str) -> GeoPoint:
    try:
        location = resolver.resolve(query)
    except PlaceLookupError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    if location is None:
        raise InputError(f"No place found for '{query}'.")
    return location


@router.get("/resolve", response_model=PlaceModel, status_code=status.HTTP_200_OK)
def resolve_place(query: str = Query(..., min_length=1)) -> dict:
    resolver = configured_resolver()
    try:
        location = resolver.resolve(query)
    except PlaceLookupError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return {
        "query": query,
        "location": {"lat": location.latitude, "lng": location.longitude} if location else None,
    }
