import httpx

from routeplanner.models.domain import Coordinate
from routeplanner.services.geocoding import CachingGeocoder, NominatimClient, parse_first_result


def _client(handler) -> NominatimClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return NominatimClient(base_url="https://geo.test", user_agent="tests", email="", client=http)


def test_resolve_returns_first_result():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"lat": "57.1497", "lon": "-2.0943"}, {"lat": "1", "lon": "1"}])

    coordinate = _client(handler).resolve("14 High St, AB10 1AB, United Kingdom")

    assert coordinate == Coordinate(57.1497, -2.0943)
    params = seen[0].url.params
    assert seen[0].url.path == "/search"
    assert params["format"] == "json"
    assert params["limit"] == "1"
    assert params["countrycodes"] == "gb"
    assert params["q"] == "14 High St, AB10 1AB, United Kingdom"


def test_non_gb_address_is_not_country_scoped():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"lat": "48.86", "lon": "2.35"}])

    _client(handler).resolve("1 Rue de Rivoli, Paris, France")

    assert "countrycodes" not in seen[0].url.params


def test_home_nation_scopes_to_gb():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    assert _client(handler).resolve("Inverness, Scotland") is None
    assert seen[0].url.params["countrycodes"] == "gb"


def test_failures_become_not_found():
    def server_error(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    def broken_body(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    def network_error(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    for handler in (server_error, broken_body, network_error):
        assert _client(handler).resolve("Leeds") is None


def test_blank_address_skips_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert _client(handler).resolve("   ") is None


def test_parse_first_result_rejects_non_finite_values():
    assert parse_first_result([{"lat": "nan", "lon": "1"}]) is None
    assert parse_first_result([{"lat": "inf", "lon": "1"}]) is None
    assert parse_first_result([{"lat": None, "lon": "1"}]) is None
    assert parse_first_result({"lat": "1", "lon": "1"}) is None
    assert parse_first_result([]) is None


def test_caching_geocoder_looks_up_each_address_once():
    class CountingGeocoder:
        calls = 0

        def resolve(self, address):
            self.calls += 1
            return Coordinate(1.0, 2.0)

    inner = CountingGeocoder()
    cached = CachingGeocoder(inner)

    assert cached.resolve("Leeds") == Coordinate(1.0, 2.0)
    assert cached.resolve(" leeds ") == Coordinate(1.0, 2.0)
    assert inner.calls == 1
