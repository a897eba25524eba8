"""Error taxonomy for route synthesis."""

from __future__ import annotations

from enum import Enum


class ProviderErrorKind(str, Enum):
    NETWORK = "network"
    NO_ROUTE_FOUND = "no-route-found"
    QUOTA_EXCEEDED = "quota-exceeded"
    INVALID_WAYPOINT = "invalid-waypoint"


class ProviderError(Exception):
    """A single directions query failed. Only the trial that issued it is discarded."""

    def __init__(self, kind: ProviderErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SynthesisError(Exception):
    """Base class for failures surfaced to the caller of ``synthesize_route``."""


class InputError(SynthesisError, ValueError):
    """The request is malformed; raised before any provider call."""


class NoRouteFoundError(SynthesisError):
    """Every trial failed, or the point-to-point direct probe failed."""


class SynthesisCancelled(SynthesisError):
    """The call was cancelled or superseded before it resolved."""
