#!/usr/bin/env python3
"""Smoke-check the upstream services the route planner depends on."""

import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from routeplanner.config import settings
from routeplanner.services.datasets import get_dataset_client
from routeplanner.services.geocoding import NominatimClient
from routeplanner.services.routing.osrm_client import OSRMTripClient, RoutingUnavailableError

SAMPLE_ADDRESS = "10 Downing Street, SW1A 2AA, United Kingdom"
SAMPLE_TRIP = [
    (51.5034, -0.1276),  # Westminster
    (51.5081, -0.0759),  # Tower of London
    (51.5194, -0.1270),  # British Museum
]


def check_geocoder() -> bool:
    print(f"1. Geocoding via {settings.geocoder_base_url} ...")
    coordinate = NominatimClient().resolve(SAMPLE_ADDRESS)
    if coordinate is None:
        print("   [ERROR] No result for sample address")
        return False
    print(f"   [OK] {SAMPLE_ADDRESS} -> {coordinate.lat:.5f}, {coordinate.lon:.5f}")
    return True


def check_routing() -> bool:
    proxy = "enabled" if settings.osrm_proxy_enabled else "disabled"
    print(f"2. Trip request via {settings.osrm_base_url} (proxy {proxy}) ...")
    try:
        trip = OSRMTripClient().trip(SAMPLE_TRIP)
    except RoutingUnavailableError as e:
        print(f"   [ERROR] {e}")
        return False
    print(f"   [OK] Order {list(trip.waypoint_order)}, {trip.distance_meters:.0f} m, {trip.duration_seconds:.0f} s")
    return True


def check_datasets() -> bool:
    print(f"3. Pinging dataset service at {settings.dataset_api_base_url} ...")
    if not get_dataset_client().ping():
        print("   [ERROR] Dataset service did not answer")
        return False
    print("   [OK] Dataset service is reachable")
    return True


def main() -> int:
    results = [check_geocoder(), check_routing(), check_datasets()]
    print()
    if all(results):
        print("[SUCCESS] All upstream services are reachable")
        return 0
    print("[FAILED] Some upstream services are unavailable")
    return 1


if __name__ == "__main__":
    sys.exit(main())
