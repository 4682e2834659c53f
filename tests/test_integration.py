import json

import httpx
import pytest
from fastapi.testclient import TestClient

from routeplanner.main import create_app
from routeplanner.models.domain import Coordinate, DatasetPage
from routeplanner.services.datasets import DatasetClient, get_dataset_client
from routeplanner.services.routing.optimizer import TripOptimizer
from routeplanner.services.routing.osrm_client import RoutingUnavailableError, TripResponse
from routeplanner.services.session import PlannerSession, SessionStore, get_session_store

COLUMNS = ["CustomerNo", "Business Name", "Address Line1", "Post Code", "Card Provider", "Email", "Lat", "Lng"]


def _row(cid: str, address: str = "", postcode: str = "", lat="", lng="") -> dict:
    return {
        "CustomerNo": cid,
        "Business Name": f"Shop {cid}",
        "Address Line1": address,
        "Post Code": postcode,
        "Card Provider": "Worldpay",
        "Email": f"{cid}@example.com",
        "Lat": lat,
        "Lng": lng,
    }


class DummyGeocoder:
    def __init__(self):
        self.known = {"9 Union St, AB11 6BD, United Kingdom": Coordinate(57.146, -2.098)}

    def resolve(self, address):
        return self.known.get(address)


class DummyRouter:
    def __init__(self):
        self.fail = False

    def trip(self, coordinates):
        if self.fail:
            raise RoutingUnavailableError("Routing failed")
        order = list(reversed(range(len(coordinates))))
        order[0], order[-1] = 0, len(coordinates) - 1
        return TripResponse(
            waypoint_order=tuple(order),
            path=tuple(coordinates),
            distance_meters=1500.0,
            duration_seconds=125.0,
        )


class DummyDatasets:
    def query(self, db, q="", skip=0, take=None):
        rows = [_row("1", "9 Union St", "AB11 6BD"), _row("2", lat="57.15", lng="-2.1")]
        return DatasetPage(columns=COLUMNS, id_column="CustomerNo", rows=rows, total=2, skip=skip, take=take or 200)

    def list_databases(self):
        return ["north", "south"]


@pytest.fixture
def router() -> DummyRouter:
    return DummyRouter()


@pytest.fixture
def api_client(router: DummyRouter) -> TestClient:
    app = create_app()
    datasets = DummyDatasets()
    store = SessionStore(lambda: PlannerSession(TripOptimizer(DummyGeocoder(), router), datasets))
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_dataset_client] = lambda: datasets
    return TestClient(app)


def _add(client: TestClient, row: dict, sid: str = "s1"):
    return client.post(
        f"/api/sessions/{sid}/route/stops",
        json={"record": row, "columns": COLUMNS, "id_column": "CustomerNo"},
    )


def test_health(api_client: TestClient):
    assert api_client.get("/api/health").json() == {"status": "ok"}


def test_classify_endpoint(api_client: TestClient):
    response = api_client.post("/api/datasets/classify", json={"columns": COLUMNS, "id_column": "CustomerNo"})

    assert response.status_code == 200
    assert response.json() == {
        "id_column": "CustomerNo",
        "lat_column": "Lat",
        "lon_column": "Lng",
        "address_columns": ["Address Line1", "Post Code"],
        "provider_column": "Card Provider",
    }


def test_address_endpoint(api_client: TestClient):
    response = api_client.post(
        "/api/datasets/address",
        json={"columns": COLUMNS, "id_column": "CustomerNo", "record": _row("7", "14 High St", "AB10 1AB")},
    )

    payload = response.json()
    assert payload["id"] == "7"
    assert payload["label"] == "Shop 7"
    assert payload["address"] == "14 High St, AB10 1AB, United Kingdom"


def test_records_are_annotated(api_client: TestClient):
    _add(api_client, _row("2", lat="57.15", lng="-2.1"))

    response = api_client.get("/api/datasets/north/records", params={"session_id": "s1"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 2
    assert payload["has_next_page"] is False
    first, second = payload["items"]
    assert first["label"] == "Shop 1"
    assert first["provider"] == "WORLDPAY"
    assert first["provider_category"] == "worldpay"
    assert first["address"] == "9 Union St, AB11 6BD, United Kingdom"
    assert first["in_route"] is False
    assert second["in_route"] is True
    assert (second["lat"], second["lon"]) == (57.15, -2.1)


def test_list_databases(api_client: TestClient):
    assert api_client.get("/api/datasets").json() == {"databases": ["north", "south"]}


def test_route_lifecycle_and_optimize(api_client: TestClient):
    assert _add(api_client, _row("1", "9 Union St", "AB11 6BD")).json()["added"] is True
    assert _add(api_client, _row("1", "9 Union St", "AB11 6BD")).json()["added"] is False
    _add(api_client, _row("2", lat="57.15", lng="-2.1"))
    _add(api_client, _row("3", lat="57.2", lng="-2.2"))

    response = api_client.post("/api/sessions/s1/route/optimize")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "optimized"
    assert [stop["id"] for stop in payload["stops"]] == ["1", "2", "3"]
    assert payload["stops"][0]["lat"] == 57.146
    assert payload["trip"]["distance"] == "1.5 km"
    assert payload["trip"]["duration"] == "2 min"

    removed = api_client.delete("/api/sessions/s1/route/stops/3").json()
    assert removed["status"] == "populated"
    assert removed["trip"] is None

    cleared = api_client.delete("/api/sessions/s1/route").json()
    assert cleared == {"status": "empty", "stops": [], "trip": None}


def test_optimize_reports_unresolvable_stop(api_client: TestClient):
    _add(api_client, _row("1", "Nowhere Lane"))
    _add(api_client, _row("2", lat="57.15", lng="-2.1"))

    response = api_client.post("/api/sessions/s1/route/optimize")

    assert response.status_code == 422
    assert response.json()["detail"]["message"] == "Couldn't locate: Shop 1"
    assert response.json()["detail"]["stop_id"] == "1"


def test_optimize_with_too_few_stops(api_client: TestClient):
    _add(api_client, _row("2", lat="57.15", lng="-2.1"))

    response = api_client.post("/api/sessions/s1/route/optimize")

    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "insufficient_stops"


def test_optimize_routing_unavailable(api_client: TestClient, router: DummyRouter):
    router.fail = True
    _add(api_client, _row("2", lat="57.15", lng="-2.1"))
    _add(api_client, _row("3", lat="57.2", lng="-2.2"))

    response = api_client.post("/api/sessions/s1/route/optimize")

    assert response.status_code == 503
    assert response.json()["detail"]["message"] == "Routing failed"


def test_set_coordinates_and_locate(api_client: TestClient):
    _add(api_client, _row("1", "9 Union St", "AB11 6BD"))
    _add(api_client, _row("4", "Unknown Rd"))

    located = api_client.post("/api/sessions/s1/route/stops/1/locate")
    assert located.status_code == 200
    assert located.json()["lat"] == 57.146

    missing = api_client.post("/api/sessions/s1/route/stops/4/locate")
    assert missing.status_code == 404

    updated = api_client.put("/api/sessions/s1/route/stops/4/coordinates", json={"lat": 57.0, "lon": -2.0})
    assert updated.status_code == 200
    assert updated.json()["stops"][1]["lat"] == 57.0

    invalid = api_client.put("/api/sessions/s1/route/stops/4/coordinates", json={"lat": 100, "lon": 0})
    assert invalid.status_code == 422

    unknown = api_client.put("/api/sessions/s1/route/stops/zz/coordinates", json={"lat": 1, "lon": 1})
    assert unknown.status_code == 404


def test_directions_endpoint(api_client: TestClient):
    _add(api_client, _row("2", lat="57.15", lng="-2.1"))
    assert api_client.get("/api/sessions/s1/route/directions").status_code == 400

    _add(api_client, _row("1", "9 Union St", "AB11 6BD"))
    response = api_client.get("/api/sessions/s1/route/directions")

    assert response.status_code == 200
    assert response.json()["url"].startswith("https://www.google.com/maps/dir/?api=1&origin=57.15%2C-2.1")


def test_sessions_are_isolated(api_client: TestClient):
    _add(api_client, _row("2", lat="57.15", lng="-2.1"), sid="a")

    assert api_client.get("/api/sessions/b/route").json()["stops"] == []
    assert len(api_client.get("/api/sessions/a/route").json()["stops"]) == 1


def test_ending_a_session_releases_it(api_client: TestClient):
    _add(api_client, _row("2", lat="57.15", lng="-2.1"), sid="gone")

    assert api_client.delete("/api/sessions/gone").status_code == 204
    assert api_client.delete("/api/sessions/gone").status_code == 404
    assert api_client.get("/api/sessions/gone/route").json()["stops"] == []


@pytest.fixture
def record_service_requests(api_client: TestClient) -> list:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "DELETE":
            return httpx.Response(404, json={"error": "Customer not found"})
        return httpx.Response(200, json={"ok": True})

    http = httpx.Client(base_url="https://records.test", transport=httpx.MockTransport(handler))
    client = DatasetClient(base_url="https://records.test", client=http)
    api_client.app.dependency_overrides[get_dataset_client] = lambda: client
    return seen


def test_record_edits_reach_record_service(api_client: TestClient, record_service_requests: list):
    created = api_client.post("/api/datasets/north/records", json={"values": {"CustomerNo": "9", "Town": "Leeds"}})
    updated = api_client.put("/api/datasets/north/records/9", json={"values": {"Town": "York"}})

    assert created.status_code == 201
    assert created.json() == {"database": "north", "id": None, "status": "created"}
    assert updated.json()["status"] == "updated"
    first, second = record_service_requests
    assert (first.method, first.url.path, first.url.params["db"]) == ("POST", "/api/customers", "north")
    assert json.loads(second.content) == {"values": {"Town": "York"}}


def test_record_edit_errors(api_client: TestClient, record_service_requests: list):
    rejected = api_client.put("/api/datasets/north/records/9", json={"values": {"Address": "1 High St, Leeds"}})
    missing = api_client.delete("/api/datasets/north/records/9")

    assert rejected.status_code == 400
    assert "Address" in rejected.json()["detail"]
    assert missing.status_code == 502
    assert missing.json()["detail"] == "Customer not found"
    assert [request.method for request in record_service_requests] == ["DELETE"]
