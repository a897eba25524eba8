"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..models.domain import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between_km(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the initial bearing from (lat1, lon1) to (lat2, lon2)."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)
    y = math.sin(delta_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return (lon + 540.0) % 360.0 - 180.0


def destination_point(origin: GeoPoint, distance_km: float, bearing_deg: float) -> GeoPoint:
    """Point reached by travelling ``distance_km`` along a great circle from ``origin``.

    Bearing is clockwise from true north and may be any real value. NaN or
    infinite inputs yield NaN coordinates.
    """

    inputs = (origin.latitude, origin.longitude, distance_km, bearing_deg)
    if not all(math.isfinite(value) for value in inputs):
        return GeoPoint(math.nan, math.nan)

    angular = distance_km / EARTH_RADIUS_KM
    theta = math.radians(bearing_deg)
    phi1 = math.radians(origin.latitude)
    lambda1 = math.radians(origin.longitude)

    sin_phi2 = math.sin(phi1) * math.cos(angular) + math.cos(phi1) * math.sin(angular) * math.cos(theta)
    # rounding can push |sin_phi2| a hair past 1
    sin_phi2 = max(-1.0, min(1.0, sin_phi2))
    phi2 = math.asin(sin_phi2)
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(angular) * math.cos(phi1),
        math.cos(angular) - math.sin(phi1) * math.sin(phi2),
    )
    return GeoPoint(math.degrees(phi2), normalize_longitude(math.degrees(lambda2)))


def arithmetic_midpoint(a: GeoPoint, b: GeoPoint) -> GeoPoint:
    """Component-wise mean of two points.

    Not a geodesic midpoint: it drifts near the poles and breaks across the
    antimeridian. Detour anchoring relies on this exact approximation.
    """
    return GeoPoint((a.latitude + b.latitude) / 2, (a.longitude + b.longitude) / 2)
