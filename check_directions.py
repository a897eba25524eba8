#!/usr/bin/env python3
"""Manual script to verify directions provider connectivity and run one synthesis."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from jogroute.config import settings
from jogroute.models.domain import DistanceUnit, GeoPoint, RouteMode, SynthesisRequest
from jogroute.services.directions.query import build_provider
from jogroute.services.outputs.directions_formatter import directions_to_text
from jogroute.services.synthesis.errors import SynthesisError
from jogroute.services.synthesis.service import RouteSynthesizer


def main():
    print("=" * 60)
    print("Directions Provider Check")
    print("=" * 60)
    print()

    print("1. Checking configuration...")
    print(f"   Provider: {settings.directions_provider}")
    try:
        provider = build_provider()
    except ValueError as e:
        print(f"   [ERROR] {e}")
        print("   Set JOGROUTE_GOOGLE_MAPS_API_KEY or JOGROUTE_OSRM_BASE_URL in your .env file")
        return 1
    print("   [OK] Provider client created")
    print()

    print("2. Synthesizing a 5 km loop in central Berlin...")
    request = SynthesisRequest(
        start=GeoPoint(52.517037, 13.388860),
        target_distance=5.0,
        unit=DistanceUnit.KM,
        mode=RouteMode.LOOP,
    )
    try:
        result = RouteSynthesizer(provider).synthesize(request)
    except SynthesisError as e:
        print(f"   [ERROR] {type(e).__name__}: {e}")
        return 1
    finally:
        provider.close()

    print(f"   [OK] Estimated distance: {result.estimated_distance} {result.unit.value}")
    print(f"   [OK] Outcome: {result.outcome.value}")
    print(f"   [OK] Trials: {result.metadata}")
    print()
    print(directions_to_text(result.route))
    print()
    print("=" * 60)
    print("[SUCCESS] Directions provider is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
