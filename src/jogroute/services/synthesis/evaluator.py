"""Best-candidate tracking for one synthesis call."""

from __future__ import annotations

import threading
from typing import Optional

from ...models.domain import Candidate, RouteResult
from .errors import ProviderError


class CandidateEvaluator:
    """Keeps the route closest to the target distance.

    Safe to feed from worker threads. A result replaces the current best only
    when its difference is strictly smaller; on a tie the lower trial index
    wins, which matches first-found order when trials run one at a time.
    """

    def __init__(self, target_km: float) -> None:
        self.target_km = target_km
        self._lock = threading.Lock()
        self._best: Optional[Candidate] = None
        self.succeeded = 0
        self.failures: list[tuple[int, ProviderError]] = []

    def offer(self, trial_index: int, route: RouteResult) -> Candidate:
        candidate = Candidate(
            trial_index=trial_index,
            route=route,
            diff_km=abs(route.total_distance_km - self.target_km),
        )
        with self._lock:
            self.succeeded += 1
            best = self._best
            if (
                best is None
                or candidate.diff_km < best.diff_km
                or (candidate.diff_km == best.diff_km and trial_index < best.trial_index)
            ):
                self._best = candidate
        return candidate

    def record_failure(self, trial_index: int, error: ProviderError) -> None:
        with self._lock:
            self.failures.append((trial_index, error))

    @property
    def best(self) -> Optional[Candidate]:
        with self._lock:
            return self._best

    def within(self, low_ratio: float, high_ratio: float) -> bool:
        """True when the best route's length is inside ``[low, high] * target``."""
        best = self.best
        if best is None:
            return False
        km = best.route.total_distance_km
        return self.target_km * low_ratio <= km <= self.target_km * high_ratio
