"""HTTP client for resolving free-text addresses through Nominatim."""

from __future__ import annotations

import logging
import math
from typing import Optional

import httpx

from ...config import settings
from ...models.domain import Coordinate
from ..address import is_probably_gb

logger = logging.getLogger(__name__)


class NominatimClient:
    """Resolve an address to a coordinate, or None when it cannot be found.

    Transport errors, non-success statuses, malformed bodies and empty result
    sets all collapse into None; callers decide how to react.
    """

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        email: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = (base_url or settings.geocoder_base_url).rstrip("/")
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.email = email if email is not None else settings.geocoder_email
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is not None:
            return self._client
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=settings.connect_timeout_seconds),
            headers={"Accept": "application/json", "User-Agent": self.user_agent},
        )

    def build_params(self, address: str) -> dict[str, str]:
        params = {"format": "json", "limit": "1", "q": address}
        if is_probably_gb(address):
            params["countrycodes"] = "gb"
        if self.email:
            params["email"] = self.email
        return params

    def resolve(self, address: str) -> Optional[Coordinate]:
        query = (address or "").strip()
        if not query:
            return None

        params = self.build_params(query)
        url = f"{self.base_url}/search"
        logger.debug(f"Geocoding '{query}' (countrycodes={params.get('countrycodes', '-')})")

        client = self._get_client()
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            results = response.json()
        except httpx.HTTPError as exc:
            logger.warning(f"Geocode request failed for '{query}': {exc}")
            return None
        except ValueError as exc:
            logger.warning(f"Geocoder returned a malformed body for '{query}': {exc}")
            return None
        finally:
            if client is not self._client:
                client.close()

        return parse_first_result(results)


def parse_first_result(results: object) -> Optional[Coordinate]:
    """Take the first Nominatim candidate and parse its string-typed lat/lon."""
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    if not isinstance(first, dict):
        return None
    try:
        lat = float(first.get("lat"))
        lon = float(first.get("lon"))
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    if not Coordinate.is_valid(lat, lon):
        return None
    return Coordinate(lat, lon)


class CachingGeocoder:
    """Memoize lookups for the lifetime of one route-planning attempt."""

    def __init__(self, geocoder) -> None:
        self._geocoder = geocoder
        self._cache: dict[str, Optional[Coordinate]] = {}

    def resolve(self, address: str) -> Optional[Coordinate]:
        key = (address or "").strip().lower()
        if key not in self._cache:
            self._cache[key] = self._geocoder.resolve(address)
        return self._cache[key]


def check_health(base_url: str | None = None) -> bool:
    """Check the geocoder answers a well-known query."""
    return NominatimClient(base_url=base_url, timeout=5.0).resolve("London, United Kingdom") is not None
