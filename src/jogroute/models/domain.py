"""Domain models for route synthesis requests and fetched routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

KM_PER_MILE = 1.60934


@dataclass(slots=True, frozen=True)
class GeoPoint:
    """A location in decimal degrees."""

    latitude: float
    longitude: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


WaypointSet = Tuple[GeoPoint, ...]


class DistanceUnit(str, Enum):
    KM = "km"
    MI = "mi"

    def to_km(self, value: float) -> float:
        return value * KM_PER_MILE if self is DistanceUnit.MI else value

    def from_km(self, value_km: float) -> float:
        return value_km / KM_PER_MILE if self is DistanceUnit.MI else value_km


class RouteMode(str, Enum):
    LOOP = "loop"
    POINT_TO_POINT = "point-to-point"


@dataclass(slots=True)
class SynthesisRequest:
    """What the user asked for: a route of roughly ``target_distance`` from ``start``."""

    start: Optional[GeoPoint]
    target_distance: float
    unit: DistanceUnit = DistanceUnit.KM
    mode: RouteMode = RouteMode.LOOP
    end: Optional[GeoPoint] = None


@dataclass(slots=True)
class Step:
    instruction: str
    distance_text: str
    duration_text: str


@dataclass(slots=True)
class Leg:
    distance_meters: float
    duration_seconds: float
    steps: list[Step] = field(default_factory=list)
    start_location: Optional[GeoPoint] = None
    end_location: Optional[GeoPoint] = None
    distance_text: str = ""
    duration_text: str = ""


@dataclass(slots=True)
class RouteResult:
    """A route fetched from the directions provider."""

    legs: list[Leg]
    origin: GeoPoint
    destination: GeoPoint
    waypoints: WaypointSet = ()
    geometry: list[GeoPoint] = field(default_factory=list)

    @property
    def total_distance_km(self) -> float:
        return sum(leg.distance_meters for leg in self.legs) / 1000.0

    @property
    def total_duration_seconds(self) -> float:
        return sum(leg.duration_seconds for leg in self.legs)


@dataclass(slots=True)
class Candidate:
    trial_index: int
    route: RouteResult
    diff_km: float


class SynthesisOutcome(str, Enum):
    BEST_CANDIDATE = "best-candidate"
    DIRECT_TOO_LONG = "direct-too-long"
    DIRECT_WITHIN_TOLERANCE = "direct-within-tolerance"
    DIRECT_FALLBACK = "direct-fallback"


@dataclass(slots=True)
class SynthesisResult:
    estimated_distance: float
    unit: DistanceUnit
    mode: RouteMode
    route: RouteResult
    outcome: SynthesisOutcome
    metadata: dict = field(default_factory=dict)
