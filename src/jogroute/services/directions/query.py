"""Single-shot route queries against the configured directions provider."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import GeoPoint, RouteResult
from ..synthesis.errors import ProviderError, ProviderErrorKind
from .base import DirectionsProvider

logger = logging.getLogger(__name__)


class RouteQueryClient:
    """Wraps exactly one provider call per query and normalizes its failures.

    Transport errors and unparseable payloads both come back as a
    ``network`` ``ProviderError``, so only the issuing trial is lost.

    There is no retry here: the search retries by issuing a new trial with
    different waypoints.
    """

    def __init__(self, provider: DirectionsProvider) -> None:
        self.provider = provider

    def query(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        waypoints: Sequence[GeoPoint] = (),
        travel_mode: str = "walking",
        avoid_highways: bool = True,
    ) -> RouteResult:
        try:
            route = self.provider.route(
                origin=origin,
                destination=destination,
                waypoints=list(waypoints),
                travel_mode=travel_mode,
                avoid_highways=avoid_highways,
            )
        except ProviderError:
            raise
        except httpx.TimeoutException as exc:
            raise ProviderError(ProviderErrorKind.NETWORK, f"Directions request timed out: {exc}") from exc
        except (httpx.HTTPError, OSError) as exc:
            raise ProviderError(ProviderErrorKind.NETWORK, f"Directions request failed: {exc}") from exc
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            # an "OK" payload missing legs, distances or a valid polyline
            raise ProviderError(
                ProviderErrorKind.NETWORK, f"Malformed directions response: {exc!r}"
            ) from exc

        if not route.legs:
            raise ProviderError(ProviderErrorKind.NO_ROUTE_FOUND, "Directions response contained no legs")
        logger.debug(
            f"Route fetched | Distance: {route.total_distance_km:.2f} km | Waypoints: {len(waypoints)}"
        )
        return route


def build_provider(name: str | None = None) -> DirectionsProvider:
    """Construct the provider named in settings (``google`` or ``osrm``)."""
    from .google import GoogleDirectionsClient
    from .osrm import OSRMDirectionsClient

    match name or settings.directions_provider:
        case "google":
            return GoogleDirectionsClient()
        case "osrm":
            return OSRMDirectionsClient()
        case other:
            raise ValueError(f"Unknown directions provider '{other}'.")
