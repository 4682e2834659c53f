"""HTTP client for the OSRM trip service, with a proxy-then-direct fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence
from urllib.parse import quote

import httpx

from ...config import settings

logger = logging.getLogger(__name__)

LatLon = tuple[float, float]


class RoutingUnavailableError(ConnectionError):
    """Both the proxied and the direct trip request failed."""


@dataclass(frozen=True, slots=True)
class TripResponse:
    waypoint_order: tuple[int, ...]
    path: tuple[LatLon, ...]
    distance_meters: float
    duration_seconds: float


def format_coordinates(coordinates: Sequence[LatLon]) -> str:
    """Convert (lat, lon) pairs to OSRM's 'lon,lat;lon,lat' form."""
    return ";".join(f"{lon},{lat}" for lat, lon in coordinates)


def build_trip_path(coordinates: Sequence[LatLon], profile: str = "driving") -> str:
    """Relative OSRM path for an open trip fixed at the first and last coordinate."""
    return (
        f"trip/v1/{profile}/{format_coordinates(coordinates)}"
        "?geometries=geojson&overview=full&roundtrip=false&source=first&destination=last"
    )


def is_usable_trip(data: object) -> bool:
    return isinstance(data, dict) and data.get("code") == "Ok" and bool(data.get("trips"))


def parse_trip_response(data: dict, expected_waypoints: int) -> TripResponse:
    """Normalize an OSRM trip body; raises ValueError when it is malformed."""
    waypoints = data.get("waypoints")
    if not isinstance(waypoints, list) or len(waypoints) != expected_waypoints:
        raise ValueError("OSRM trip response has an unexpected number of waypoints.")
    try:
        order = tuple(int(waypoint["waypoint_index"]) for waypoint in waypoints)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("OSRM trip waypoint is missing its waypoint_index.") from exc
    if sorted(order) != list(range(expected_waypoints)):
        raise ValueError("OSRM waypoint indices do not form a permutation.")

    trip = data["trips"][0]
    try:
        distance = float(trip["distance"])
        duration = float(trip["duration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("OSRM trip is missing distance/duration.") from exc

    # GeoJSON geometry is [lon, lat]
    geometry = trip.get("geometry") or {}
    raw_coordinates = geometry.get("coordinates") if isinstance(geometry, dict) else None
    try:
        path = tuple((float(point[1]), float(point[0])) for point in (raw_coordinates or []))
    except (IndexError, TypeError, ValueError) as exc:
        raise ValueError("OSRM trip geometry is malformed.") from exc

    return TripResponse(
        waypoint_order=order,
        path=path,
        distance_meters=distance,
        duration_seconds=duration,
    )


class OSRMTripClient:
    def __init__(
        self,
        base_url: str | None = None,
        proxy_base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        use_proxy: bool | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.proxy_base_url = (proxy_base_url or settings.dataset_api_base_url or "").rstrip("/")
        self.use_proxy = settings.osrm_proxy_enabled if use_proxy is None else use_proxy
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is not None:
            return self._client
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=settings.connect_timeout_seconds),
            headers={"Accept": "application/json"},
        )

    def _proxy_url(self, path: str) -> str:
        return f"{self.proxy_base_url}/api/osrm?path={quote(path, safe='')}"

    def _request_via_proxy(self, client: httpx.Client, path: str, waypoints: int) -> TripResponse | None:
        """Single attempt through the record service's proxy; None on any failure."""
        try:
            response = client.get(self._proxy_url(path))
            if not response.is_success:
                logger.warning(f"OSRM proxy returned HTTP {response.status_code}, trying direct")
                return None
            data = response.json()
            if not is_usable_trip(data):
                logger.warning("OSRM proxy returned an unusable trip body, trying direct")
                return None
            return parse_trip_response(data, waypoints)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"OSRM proxy failed, trying direct: {exc}")
        return None

    def _request_direct(self, client: httpx.Client, path: str, waypoints: int) -> TripResponse:
        url = f"{self.base_url}/{path}"
        try:
            response = client.get(url)
        except httpx.HTTPError as exc:
            raise RoutingUnavailableError(f"Failed to connect to OSRM service at {self.base_url}: {exc}") from exc
        if not response.is_success:
            raise RoutingUnavailableError(f"Routing HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise RoutingUnavailableError("Routing failed") from exc
        if not is_usable_trip(data):
            message = data.get("message") if isinstance(data, dict) else None
            raise RoutingUnavailableError(message or "Routing failed")
        try:
            return parse_trip_response(data, waypoints)
        except ValueError as exc:
            raise RoutingUnavailableError(str(exc)) from exc

    def trip(self, coordinates: Sequence[LatLon]) -> TripResponse:
        """Optimize an open trip through ``coordinates`` (lat, lon).

        The proxy is tried once, then the upstream service once. No retries.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for an OSRM trip.")

        path = build_trip_path(coordinates, self.profile)
        client = self._get_client()
        try:
            if self.use_proxy and self.proxy_base_url:
                result = self._request_via_proxy(client, path, len(coordinates))
                if result is not None:
                    return result
            return self._request_direct(client, path, len(coordinates))
        finally:
            if client is not self._client:
                client.close()


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health with a minimal two-point trip."""
    test_coords = [(51.507351, -0.127758), (51.503364, -0.127625)]
    try:
        OSRMTripClient(base_url=base_url, use_proxy=False, timeout=5.0).trip(test_coords)
        return True
    except (RoutingUnavailableError, ValueError):
        return False
