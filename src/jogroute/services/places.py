"""Free-text place lookup used to build synthesis requests."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from ..config import settings
from ..models.domain import GeoPoint

logger = logging.getLogger(__name__)


class PlaceResolver(Protocol):
    def resolve(self, query: str) -> Optional[GeoPoint]:
        ...


class PlaceLookupError(Exception):
    """The geocoding service could not be reached or rejected the request."""


class GoogleGeocodingResolver:
    """Resolve place names through the Google Geocoding web service."""

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
        self.base_url = base_url or settings.google_geocode_url
        timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._client = client or httpx.Client(timeout=timeout)

    def resolve(self, query: str) -> Optional[GeoPoint]:
        query = query.strip()
        if not query:
            return None
        try:
            response = self._client.get(self.base_url, params={"address": query, "key": self.api_key})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PlaceLookupError(f"Place lookup failed for '{query}': {exc}") from exc

        status = data.get("status")
        if status == "ZERO_RESULTS":
            logger.info(f"No place found for '{query}'")
            return None
        if status != "OK":
            raise PlaceLookupError(data.get("error_message") or f"Geocoding returned {status}")

        location = data["results"][0]["geometry"]["location"]
        return GeoPoint(float(location["lat"]), float(location["lng"]))
