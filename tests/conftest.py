import asyncio
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="meetup-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'app.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["GOOGLE_MAPS_API_KEY"] = "test-key"
os.environ["JWT_SECRET"] = "test-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.db.session import get_db, init_models  # noqa: E402
from app.geo.client import GeoProviderError, get_maps_client  # noqa: E402
from app.main import app  # noqa: E402


class FakeMapsClient:
    """Stand-in for GoogleMapsClient with canned answers."""

    def __init__(self):
        self.locations = {
            "1 North St": {"lat": 10.0, "lng": 20.0, "address": "1 North St, Springfield"},
            "2 South St": {"lat": 20.0, "lng": 40.0, "address": "2 South St, Springfield"},
            "3 East St": {"lat": 30.0, "lng": 60.0, "address": "3 East St, Springfield"},
        }
        self.fail = False
        self.calls = []

    def _check(self):
        if self.fail:
            raise GeoProviderError("REQUEST_DENIED")

    def autocomplete(self, text):
        self.calls.append(("autocomplete", text))
        self._check()
        return [{
            "place_id": "abc",
            "description": f"{text}, Springfield",
            "main_text": text,
            "secondary_text": "Springfield",
        }]

    def geocode(self, address):
        self.calls.append(("geocode", address))
        self._check()
        return self.locations.get(address)

    def places_nearby(self, lat, lng, place_type="restaurant", radius=5000):
        self.calls.append(("places", lat, lng, place_type))
        self._check()
        return [{
            "name": "Cafe Central",
            "address": "5 Main St",
            "rating": 4.5,
            "types": [place_type],
            "place_id": "place-1",
            "lat": lat,
            "lng": lng,
        }]


@pytest.fixture
def maps_client():
    return FakeMapsClient()


@pytest.fixture
def client(tmp_path, maps_client):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_models(engine))
    session_factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_maps_client] = lambda: maps_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


@pytest.fixture
def make_user(client):
    def _make_user(name, address="1 North St", password="secret"):
        response = client.post("/api/users", json={"name": name, "address": address, "password": password})
        assert response.status_code == 200, response.text
        return response.json()
    return _make_user


@pytest.fixture
def make_group(client):
    def _make_group(creator, *members, name="Road trip"):
        response = client.post("/api/groups", json={"name": name, "creatorId": creator["id"]})
        assert response.status_code == 200, response.text
        group = response.json()
        for member in members:
            response = client.post(f"/api/groups/{group['id']}/members", json={"userId": member["id"]})
            assert response.status_code == 200, response.text
            group = response.json()
        return group
    return _make_group


@pytest.fixture
def propose(client):
    def _propose(group, user, name="Cafe Central", place_id="place-1"):
        response = client.post(
            f"/api/groups/{group['id']}/activities",
            json={
                "userId": user["id"],
                "activity": {
                    "name": name,
                    "address": "5 Main St",
                    "placeId": place_id,
                    "rating": 4.5,
                    "lat": 15.0,
                    "lng": 30.0,
                    "types": ["cafe"],
                },
            },
        )
        assert response.status_code == 200, response.text
        return response.json()
    return _propose
