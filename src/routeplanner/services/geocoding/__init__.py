"""Address geocoding."""

from .nominatim_client import CachingGeocoder, NominatimClient, parse_first_result

__all__ = ["NominatimClient", "CachingGeocoder", "parse_first_result"]
