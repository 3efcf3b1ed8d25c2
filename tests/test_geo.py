import pytest

from app.geo.client import GeoProviderError, GoogleMapsClient, MissingApiKeyError
from app.geo.services import compute_midpoint


def test_compute_midpoint():
    assert compute_midpoint([{"lat": 10, "lng": 20}, {"lat": 20, "lng": 40}]) == {"lat": 15, "lng": 30}
    with pytest.raises(ValueError):
        compute_midpoint([])


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params))
        return FakeResponse(self.payload)


def test_client_parses_geocode():
    session = FakeSession({
        "status": "OK",
        "results": [{
            "formatted_address": "1 North St, Springfield",
            "geometry": {"location": {"lat": 1.5, "lng": 2.5}},
        }],
    })
    client = GoogleMapsClient("key", session=session)

    assert client.geocode("1 North St") == {"lat": 1.5, "lng": 2.5, "address": "1 North St, Springfield"}
    url, params = session.requests[0]
    assert params["address"] == "1 North St"
    assert params["key"] == "key"


def test_client_zero_results_and_errors():
    client = GoogleMapsClient("key", session=FakeSession({"status": "ZERO_RESULTS", "results": []}))
    assert client.geocode("nowhere") is None

    client = GoogleMapsClient("key", session=FakeSession({"status": "REQUEST_DENIED", "error_message": "bad key"}))
    with pytest.raises(GeoProviderError):
        client.geocode("1 North St")

    with pytest.raises(MissingApiKeyError):
        GoogleMapsClient(None, session=FakeSession({})).autocomplete("1 North")


def test_client_places_nearby_keeps_top_ten():
    results = [
        {
            "name": f"Place {i}",
            "vicinity": f"{i} Main St",
            "rating": 4.0,
            "types": ["restaurant"],
            "place_id": f"p{i}",
            "geometry": {"location": {"lat": 1.0, "lng": 2.0}},
        }
        for i in range(15)
    ]
    session = FakeSession({"status": "OK", "results": results})
    places = GoogleMapsClient("key", session=session).places_nearby(1.0, 2.0, "cafe")

    assert len(places) == 10
    assert places[0]["address"] == "0 Main St"
    _, params = session.requests[0]
    assert params["radius"] == 5000
    assert params["type"] == "cafe"
    assert params["location"] == "1.0,2.0"


def test_autocomplete_endpoint(client, maps_client):
    assert client.get("/api/address/autocomplete", params={"input": "ab"}).json() == []
    assert maps_client.calls == []

    suggestions = client.get("/api/address/autocomplete", params={"input": "1 North"}).json()
    assert suggestions[0]["placeId"] == "abc"
    assert suggestions[0]["mainText"] == "1 North"


def test_geocode_endpoint(client):
    response = client.post("/api/geocode", json={"address": "1 North St"})
    assert response.status_code == 200
    assert response.json() == {"lat": 10.0, "lng": 20.0, "address": "1 North St, Springfield"}

    response = client.post("/api/geocode", json={"address": "Atlantis"})
    assert response.status_code == 404


def test_midpoint_endpoint(client):
    response = client.post("/api/midpoint", json={"addresses": ["1 North St", "2 South St", "3 East St"]})
    assert response.status_code == 200
    assert response.json() == {"lat": 20.0, "lng": 40.0}

    response = client.post("/api/midpoint", json={"addresses": ["1 North St"]})
    assert response.status_code == 400

    response = client.post("/api/midpoint", json={"addresses": ["1 North St", "Atlantis"]})
    assert response.status_code == 500


def test_places_endpoint(client):
    response = client.post("/api/places", json={"lat": 15.0, "lng": 30.0})
    assert response.status_code == 200
    places = response.json()
    assert places[0]["name"] == "Cafe Central"
    assert places[0]["types"] == ["restaurant"]


def test_provider_failure_is_500(client, maps_client):
    maps_client.fail = True
    response = client.post("/api/places", json={"lat": 15.0, "lng": 30.0, "type": "bar"})
    assert response.status_code == 500
    response = client.get("/api/address/autocomplete", params={"input": "1 North"})
    assert response.status_code == 500


def test_missing_api_key(client):
    from app.geo.client import get_maps_client
    from app.main import app

    app.dependency_overrides[get_maps_client] = lambda: GoogleMapsClient(None)
    response = client.post("/api/geocode", json={"address": "1 North St"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Server missing API key"
