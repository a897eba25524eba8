import threading
from typing import Callable, Sequence

import pytest

from jogroute.models.domain import GeoPoint, Leg, RouteResult, Step


def make_route(
    origin: GeoPoint,
    destination: GeoPoint,
    waypoints: Sequence[GeoPoint],
    total_km: float,
) -> RouteResult:
    stops = [origin, *waypoints, destination]
    leg_count = len(stops) - 1
    legs = [
        Leg(
            distance_meters=total_km * 1000.0 / leg_count,
            duration_seconds=total_km * 720.0 / leg_count,
            steps=[Step(instruction="Head <b>north</b>", distance_text="0.1 km", duration_text="1 min")],
            start_location=stops[i],
            end_location=stops[i + 1],
            distance_text=f"{total_km / leg_count:.1f} km",
            duration_text="12 mins",
        )
        for i in range(leg_count)
    ]
    return RouteResult(legs=legs, origin=origin, destination=destination, waypoints=tuple(waypoints))


class FakeDirections:
    """Directions provider stub whose route length comes from ``distance_fn``.

    ``distance_fn(origin, destination, waypoints)`` returns kilometres or raises
    ``ProviderError``. Calls are recorded in arrival order.
    """

    def __init__(self, distance_fn: Callable[[GeoPoint, GeoPoint, tuple], float]) -> None:
        self.distance_fn = distance_fn
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def route(self, origin, destination, waypoints, travel_mode, avoid_highways) -> RouteResult:
        waypoints = tuple(waypoints)
        with self._lock:
            self.calls.append(
                {
                    "origin": origin,
                    "destination": destination,
                    "waypoints": waypoints,
                    "travel_mode": travel_mode,
                    "avoid_highways": avoid_highways,
                }
            )
        km = self.distance_fn(origin, destination, waypoints)
        return make_route(origin, destination, waypoints, km)

    def waypoint_calls(self) -> list[dict]:
        return [call for call in self.calls if call["waypoints"]]


@pytest.fixture
def fake_directions() -> Callable[..., FakeDirections]:
    return FakeDirections


@pytest.fixture
def start_point() -> GeoPoint:
    return GeoPoint(40.7128, -74.0060)


@pytest.fixture
def end_point() -> GeoPoint:
    return GeoPoint(40.7306, -73.9866)


@pytest.fixture
def route_of() -> Callable[..., RouteResult]:
    return make_route
