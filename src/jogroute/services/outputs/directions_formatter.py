"""Serializers for synthesized routes and their turn-by-turn directions."""

from __future__ import annotations

import html
import re
from dataclasses import asdict

from ...models.domain import GeoPoint, RouteResult, SynthesisResult

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def strip_html(text: str) -> str:
    """Plain-text version of a provider's rich instruction markup."""
    # block-level tags separate sentences, e.g. <div>Destination will be on the left</div>
    text = re.sub(r"<(div|br)[^>]*>", " ", text)
    return _SPACE_RE.sub(" ", html.unescape(_TAG_RE.sub("", text))).strip()


def leg_label(index: int) -> str:
    return "Start" if index == 0 else f"Waypoint {index}"


def directions_panel(route: RouteResult) -> list[dict]:
    """Legs and steps shaped for a directions side panel."""
    return [
        {
            "label": leg_label(index),
            "distance_text": leg.distance_text,
            "duration_text": leg.duration_text,
            "steps": [
                {
                    "instruction": strip_html(step.instruction),
                    "instruction_html": step.instruction,
                    "distance_text": step.distance_text,
                    "duration_text": step.duration_text,
                }
                for step in leg.steps
            ],
        }
        for index, leg in enumerate(route.legs)
    ]


def directions_to_text(route: RouteResult) -> str:
    lines: list[str] = []
    for index, leg in enumerate(route.legs):
        lines.append(f"{leg_label(index)} - Distance: {leg.distance_text} | Duration: {leg.duration_text}")
        for number, step in enumerate(leg.steps, start=1):
            lines.append(f"  {number}. {strip_html(step.instruction)} ({step.distance_text}, {step.duration_text})")
    lines.append(f"Total Distance: {route.total_distance_km:.2f} km")
    return "\n".join(lines)


def _point(point: GeoPoint | None) -> dict | None:
    return asdict(point) if point is not None else None


def route_to_json(route: RouteResult) -> dict:
    return {
        "origin": _point(route.origin),
        "destination": _point(route.destination),
        "waypoints": [_point(wp) for wp in route.waypoints],
        "total_distance_km": round(route.total_distance_km, 3),
        "total_duration_seconds": route.total_duration_seconds,
        "legs": [
            {
                "distance_meters": leg.distance_meters,
                "duration_seconds": leg.duration_seconds,
                "distance_text": leg.distance_text,
                "duration_text": leg.duration_text,
                "start_location": _point(leg.start_location),
                "end_location": _point(leg.end_location),
                "steps": [asdict(step) for step in leg.steps],
            }
            for leg in route.legs
        ],
    }


def synthesis_result_to_json(result: SynthesisResult) -> dict:
    return {
        "estimated_distance": result.estimated_distance,
        "unit": result.unit.value,
        "mode": result.mode.value,
        "outcome": result.outcome.value,
        "metadata": result.metadata,
        "route": route_to_json(result.route),
    }
