"""Hand-off links for opening the route in an external maps app."""

from __future__ import annotations

from typing import Optional, Sequence
from urllib.parse import quote

from ...models.domain import RouteStop

GOOGLE_DIRECTIONS_URL = "https://www.google.com/maps/dir/?api=1"


def stop_location(stop: RouteStop) -> Optional[str]:
    if stop.has_coordinates:
        return f"{stop.lat},{stop.lon}"
    return stop.address or None


def build_directions_url(stops: Sequence[RouteStop]) -> Optional[str]:
    """Google Maps directions through the stops, or None with fewer than two usable stops."""
    locations = [location for location in (stop_location(stop) for stop in stops) if location]
    if len(locations) < 2:
        return None

    url = (
        f"{GOOGLE_DIRECTIONS_URL}&origin={quote(locations[0], safe='')}"
        f"&destination={quote(locations[-1], safe='')}"
    )
    if len(locations) > 2:
        url += f"&waypoints={quote('|'.join(locations[1:-1]), safe='')}"
    return url
