from datetime import datetime, timedelta, timezone

import pytest

from esp32cam.api.routes_images import parse_limit
from esp32cam.core.deps import get_image_repo
from esp32cam.main import app
from esp32cam.services.image_repo import ImageRepository

from conftest import FakeDB

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    fake = FakeDB()
    devices = ["esp32-1", "esp32-2", "esp32-3"]
    for i in range(12):
        fake["images"].docs.append({
            "_id": f"id{i}",
            "deviceId": devices[i % 3],
            "url": f"https://cdn/{i}.jpg",
            "public_id": f"esp32/{devices[i % 3]}/{i}",
            "width": 640,
            "height": 480,
            "bytes": 1000 + i,
            "createdAt": T0 + timedelta(minutes=i),
        })
    return fake


@pytest.fixture
def images_client(client, db):
    app.dependency_overrides[get_image_repo] = lambda: ImageRepository(db_getter=lambda: db)
    return client


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 20), ("5", 5), ("100", 100), ("250", 100), ("abc", 20), ("0", 20), ("-3", 20)],
)
def test_parse_limit(raw, expected):
    assert parse_limit(raw) == expected


def test_limit_and_newest_first(images_client):
    r = images_client.get("/images", params={"limit": 5})

    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    images = body["images"]
    assert len(images) == 5
    created = [img["createdAt"] for img in images]
    assert created == sorted(created, reverse=True)
    assert images[0]["url"] == "https://cdn/11.jpg"


def test_only_listing_fields_are_returned(images_client):
    images = images_client.get("/images").json()["images"]

    assert len(images) == 12
    for img in images:
        assert set(img) == {"url", "deviceId", "createdAt", "public_id", "width", "height", "bytes"}


def test_device_filter(images_client):
    images = images_client.get("/images", params={"deviceId": "esp32-2"}).json()["images"]

    assert len(images) == 4
    assert {img["deviceId"] for img in images} == {"esp32-2"}


def test_limit_is_clamped_and_defaulted(client, repo):
    client.get("/images", params={"limit": 1000})
    client.get("/images", params={"limit": "lots"})
    client.get("/images")

    assert [q["limit"] for q in repo.queries] == [100, 20, 20]


def test_query_failure_returns_ok_false(client, repo):
    repo.fail = True

    r = client.get("/images")

    assert r.status_code == 500
    assert r.json() == {"ok": False, "error": "mongo down"}


def test_uninitialized_db_is_reported(client):
    app.dependency_overrides[get_image_repo] = lambda: ImageRepository()

    r = client.get("/images")

    assert r.status_code == 500
    assert r.json()["ok"] is False
    assert "not initialized" in r.json()["error"]
