"""Route synthesis orchestration service."""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Optional

from ...config import settings
from ...models.domain import (
    GeoPoint,
    RouteMode,
    RouteResult,
    SynthesisOutcome,
    SynthesisRequest,
    SynthesisResult,
    WaypointSet,
)
from ..directions.base import DirectionsProvider
from ..directions.query import RouteQueryClient, build_provider
from .errors import (
    InputError,
    NoRouteFoundError,
    ProviderError,
    ProviderErrorKind,
    SynthesisCancelled,
)
from .evaluator import CandidateEvaluator
from .strategies import (
    DetourStrategy,
    LoopStrategy,
    RandomFactory,
    WaypointStrategy,
    make_random_factory,
)

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and one synthesis call."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _Deadline:
    def __init__(self, seconds: float) -> None:
        self._expires = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires - time.monotonic())


def _pick(value, default):
    return default if value is None else value


def _check_point(name: str, point: GeoPoint) -> None:
    if not (math.isfinite(point.latitude) and math.isfinite(point.longitude)):
        raise InputError(f"{name} point has non-finite coordinates.")
    if not -90.0 <= point.latitude <= 90.0:
        raise InputError(f"{name} latitude {point.latitude} is outside [-90, 90].")
    if not -180.0 <= point.longitude <= 180.0:
        raise InputError(f"{name} longitude {point.longitude} is outside [-180, 180].")


def validate_request(request: SynthesisRequest) -> None:
    if request.start is None:
        raise InputError("Please select a start location.")
    _check_point("Start", request.start)
    if request.mode is RouteMode.POINT_TO_POINT:
        if request.end is None:
            raise InputError("Please select an end location for a point-to-point route.")
        _check_point("End", request.end)
        if request.end == request.start:
            raise InputError("End location must differ from the start for a point-to-point route.")
    target = request.target_distance
    if target is None or not math.isfinite(target) or target <= 0:
        raise InputError("Target distance must be a positive number.")


class RouteSynthesizer:
    """Searches for a walking route whose length is close to a target distance.

    The directions provider is injected; everything else defaults to settings.
    One instance may serve many calls, each call keeps its own state.
    """

    def __init__(
        self,
        provider: DirectionsProvider | None = None,
        *,
        max_workers: int | None = None,
        loop_trials: int | None = None,
        loop_waypoint_count: int | None = None,
        extension_trials: int | None = None,
        tolerance: tuple[float, float] | None = None,
        timeout_seconds: float | None = None,
        random_seed: int | None = None,
        random_factory: RandomFactory | None = None,
        early_exit: bool | None = None,
    ) -> None:
        self.max_workers = _pick(max_workers, settings.max_parallel_trials)
        self.loop_trials = _pick(loop_trials, settings.loop_trials)
        self.loop_waypoint_count = _pick(loop_waypoint_count, settings.loop_waypoint_count)
        self.extension_trials = _pick(extension_trials, settings.extension_trials)
        self.low_ratio, self.high_ratio = _pick(
            tolerance, (settings.tolerance_low_ratio, settings.tolerance_high_ratio)
        )
        self.timeout_seconds = _pick(timeout_seconds, settings.synthesis_timeout_seconds)
        self.random_factory = random_factory or make_random_factory(_pick(random_seed, settings.random_seed))
        self.early_exit = _pick(early_exit, settings.early_exit)

        for name in ("max_workers", "loop_trials", "loop_waypoint_count", "extension_trials"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if not 0 < self.low_ratio <= self.high_ratio:
            raise ValueError("tolerance must satisfy 0 < low <= high")

        # a provider built here is ours to close; an injected one belongs to the caller
        self._owned_provider = None
        if provider is None:
            provider = self._owned_provider = build_provider()
        self.query_client = RouteQueryClient(provider)

    def close(self) -> None:
        """Release the HTTP client of a provider this synthesizer built itself."""
        owned, self._owned_provider = self._owned_provider, None
        close = getattr(owned, "close", None)
        if close is not None:
            close()

    def synthesize(
        self,
        request: SynthesisRequest,
        cancel_token: CancellationToken | None = None,
    ) -> SynthesisResult:
        validate_request(request)
        token = cancel_token or CancellationToken()
        deadline = _Deadline(self.timeout_seconds)
        target_km = request.unit.to_km(request.target_distance)
        logger.info(
            f"Synthesizing {request.mode.value} route | Target: {target_km:.2f} km "
            f"({request.target_distance} {request.unit.value})"
        )

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="route-trial")
        try:
            if request.mode is RouteMode.LOOP:
                route, outcome, metadata = self._loop(request, target_km, executor, token, deadline)
            else:
                route, outcome, metadata = self._point_to_point(request, target_km, executor, token, deadline)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if token.cancelled:
            raise SynthesisCancelled("Route synthesis was cancelled.")

        estimated = round(request.unit.from_km(route.total_distance_km), 2)
        metadata.update({"target_km": round(target_km, 3), "route_km": round(route.total_distance_km, 3)})
        logger.info(
            f"Route resolved | Outcome: {outcome.value} | Distance: {estimated} {request.unit.value}"
        )
        return SynthesisResult(
            estimated_distance=estimated,
            unit=request.unit,
            mode=request.mode,
            route=route,
            outcome=outcome,
            metadata=metadata,
        )

    def _loop(
        self,
        request: SynthesisRequest,
        target_km: float,
        executor: ThreadPoolExecutor,
        token: CancellationToken,
        deadline: _Deadline,
    ) -> tuple[RouteResult, SynthesisOutcome, dict]:
        strategy = LoopStrategy(request.start, target_km, self.loop_waypoint_count)
        evaluator = CandidateEvaluator(target_km)
        self._run_trials(
            strategy, self.loop_trials, request.start, request.start, evaluator, executor, token, deadline
        )
        self._raise_if_cancelled(token)

        best = evaluator.best
        if best is None:
            raise NoRouteFoundError("Could not generate route. Please try a different location or distance.")
        return best.route, SynthesisOutcome.BEST_CANDIDATE, self._trial_metadata(evaluator, best.trial_index)

    def _point_to_point(
        self,
        request: SynthesisRequest,
        target_km: float,
        executor: ThreadPoolExecutor,
        token: CancellationToken,
        deadline: _Deadline,
    ) -> tuple[RouteResult, SynthesisOutcome, dict]:
        direct = self._probe(request.start, request.end, executor, token, deadline)
        direct_km = direct.total_distance_km
        logger.info(f"Direct probe: {direct_km:.2f} km against target {target_km:.2f} km")

        if direct_km > target_km * self.high_ratio:
            return direct, SynthesisOutcome.DIRECT_TOO_LONG, {"direct_km": round(direct_km, 3)}
        if direct_km >= target_km * self.low_ratio:
            return direct, SynthesisOutcome.DIRECT_WITHIN_TOLERANCE, {"direct_km": round(direct_km, 3)}

        strategy = DetourStrategy(request.start, request.end, target_km, direct_km)
        evaluator = CandidateEvaluator(target_km)
        self._run_trials(
            strategy, self.extension_trials, request.start, request.end, evaluator, executor, token, deadline
        )
        self._raise_if_cancelled(token)

        best = evaluator.best
        if best is None:
            logger.warning("Every detour trial failed; falling back to the direct route.")
            metadata = self._trial_metadata(evaluator, None)
            metadata["direct_km"] = round(direct_km, 3)
            return direct, SynthesisOutcome.DIRECT_FALLBACK, metadata
        metadata = self._trial_metadata(evaluator, best.trial_index)
        metadata["direct_km"] = round(direct_km, 3)
        return best.route, SynthesisOutcome.BEST_CANDIDATE, metadata

    def _probe(
        self,
        start: GeoPoint,
        end: GeoPoint,
        executor: ThreadPoolExecutor,
        token: CancellationToken,
        deadline: _Deadline,
    ) -> RouteResult:
        future = executor.submit(self.query_client.query, start, end, ())
        done, _ = self._wait_cancellable({future}, token, deadline, return_when=FIRST_COMPLETED)
        self._raise_if_cancelled(token)
        if not done:
            future.cancel()
            logger.warning("Direct probe timed out.")
            raise NoRouteFoundError("Could not generate route. Please try different locations.")
        try:
            return future.result()
        except ProviderError as exc:
            logger.warning(f"Direct probe failed: {exc}")
            raise NoRouteFoundError("Could not generate route. Please try different locations.") from exc

    def _run_trials(
        self,
        strategy: WaypointStrategy,
        trial_count: int,
        origin: GeoPoint,
        destination: GeoPoint,
        evaluator: CandidateEvaluator,
        executor: ThreadPoolExecutor,
        token: CancellationToken,
        deadline: _Deadline,
    ) -> None:
        # waypoints are drawn up front in trial order so a seeded run is reproducible
        waypoint_sets: list[WaypointSet] = [
            strategy.generate(index, self.random_factory(index)) for index in range(trial_count)
        ]
        futures: dict[Future, int] = {
            executor.submit(self.query_client.query, origin, destination, waypoints): index
            for index, waypoints in enumerate(waypoint_sets)
        }

        pending = set(futures)
        while pending:
            done, pending = self._wait_cancellable(pending, token, deadline, return_when=FIRST_COMPLETED)
            if token.cancelled:
                break
            if not done:
                logger.warning(f"Synthesis deadline reached with {len(pending)} trial(s) outstanding.")
                for future in pending:
                    future.cancel()
                    evaluator.record_failure(
                        futures[future],
                        ProviderError(ProviderErrorKind.NETWORK, "Trial timed out"),
                    )
                break
            for future in done:
                index = futures[future]
                try:
                    route = future.result()
                except ProviderError as exc:
                    logger.warning(f"Trial {index} failed: {exc}")
                    evaluator.record_failure(index, exc)
                    continue
                candidate = evaluator.offer(index, route)
                logger.debug(f"Trial {index}: {route.total_distance_km:.2f} km (diff {candidate.diff_km:.2f})")
            if self.early_exit and pending and evaluator.within(self.low_ratio, self.high_ratio):
                logger.info(f"Early exit with {len(pending)} trial(s) skipped.")
                for future in pending:
                    future.cancel()
                break

        if token.cancelled:
            for future in pending:
                future.cancel()

    @staticmethod
    def _wait_cancellable(
        futures: set[Future],
        token: CancellationToken,
        deadline: _Deadline,
        return_when: str,
    ) -> tuple[set[Future], set[Future]]:
        """Wait like ``concurrent.futures.wait`` but wake periodically to honour cancellation."""
        while True:
            if token.cancelled:
                return set(), set(futures)
            remaining = deadline.remaining()
            if remaining <= 0:
                return set(), set(futures)
            done, pending = wait(futures, timeout=min(remaining, 0.1), return_when=return_when)
            if done:
                return done, pending

    @staticmethod
    def _raise_if_cancelled(token: CancellationToken) -> None:
        if token.cancelled:
            raise SynthesisCancelled("Route synthesis was cancelled.")

    @staticmethod
    def _trial_metadata(evaluator: CandidateEvaluator, best_trial: Optional[int]) -> dict:
        return {
            "trials_succeeded": evaluator.succeeded,
            "trials_failed": len(evaluator.failures),
            "failure_kinds": sorted({error.kind.value for _, error in evaluator.failures}),
            "best_trial": best_trial,
        }


class SynthesisSession:
    """Runs synthesis calls where each new call supersedes the previous one.

    Mirrors a UI where pressing "generate" again abandons the route still in
    flight: the older call raises ``SynthesisCancelled`` instead of returning.
    """

    def __init__(self, synthesizer: RouteSynthesizer) -> None:
        self.synthesizer = synthesizer
        self._lock = threading.Lock()
        self._current: CancellationToken | None = None

    def synthesize(self, request: SynthesisRequest) -> SynthesisResult:
        token = CancellationToken()
        with self._lock:
            if self._current is not None:
                self._current.cancel()
            self._current = token
        try:
            return self.synthesizer.synthesize(request, cancel_token=token)
        finally:
            with self._lock:
                if self._current is token:
                    self._current = None

    def cancel(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.cancel()


def synthesize_route(
    request: SynthesisRequest,
    provider: DirectionsProvider | None = None,
    cancel_token: CancellationToken | None = None,
) -> SynthesisResult:
    """Synthesize a route of roughly the requested length.

    Without a ``provider`` one is built from settings for this call and
    closed before returning.
    """
    synthesizer = RouteSynthesizer(provider)
    try:
        return synthesizer.synthesize(request, cancel_token=cancel_token)
    finally:
        synthesizer.close()
