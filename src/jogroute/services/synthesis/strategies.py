"""Waypoint placement strategies for the candidate search."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ...models.domain import GeoPoint, WaypointSet
from ..geospatial import arithmetic_midpoint, destination_point

RandomFactory = Callable[[int], random.Random]


def make_random_factory(seed: Optional[int] = None) -> RandomFactory:
    """Return ``trial_index -> Random``.

    With a seed every trial gets its own reproducible generator. Without one
    each trial draws from OS entropy.
    """
    if seed is None:
        return lambda trial_index: random.Random()
    return lambda trial_index: random.Random(f"{seed}:{trial_index}")


class WaypointStrategy(ABC):
    """Contract for producing one trial's waypoints."""

    @abstractmethod
    def generate(self, trial_index: int, rng: random.Random) -> WaypointSet:
        raise NotImplementedError


class LoopStrategy(WaypointStrategy):
    """Scatter waypoints around the start at evenly spaced bearings.

    A trial draws one base bearing and places ``waypoint_count`` points at
    ``base + j * 360 / waypoint_count``, each roughly a third of the target
    away from the start.
    """

    def __init__(self, start: GeoPoint, target_km: float, waypoint_count: int = 2) -> None:
        if waypoint_count < 1:
            raise ValueError("waypoint_count must be >= 1")
        self.start = start
        self.target_km = target_km
        self.waypoint_count = waypoint_count

    def generate(self, trial_index: int, rng: random.Random) -> WaypointSet:
        bearing = rng.random() * 360.0
        spacing = 360.0 / self.waypoint_count
        waypoints = []
        for j in range(self.waypoint_count):
            radius_km = (self.target_km / 3.0) * (0.8 + rng.random() * 0.4)
            waypoints.append(destination_point(self.start, radius_km, bearing + j * spacing))
        return tuple(waypoints)


class DetourStrategy(WaypointStrategy):
    """Push a single waypoint off the start/end midpoint to lengthen a short route."""

    def __init__(self, start: GeoPoint, end: GeoPoint, target_km: float, direct_km: float) -> None:
        self.anchor = arithmetic_midpoint(start, end)
        self.detour_km = (target_km - direct_km) / 2.0

    def generate(self, trial_index: int, rng: random.Random) -> WaypointSet:
        bearing = rng.random() * 360.0
        return (destination_point(self.anchor, self.detour_km, bearing),)
