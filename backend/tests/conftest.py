from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from esp32cam.core.config import Settings, get_settings
from esp32cam.core.deps import get_image_repo, get_notifier, get_storage
from esp32cam.db.models.image import ImageRecord, ImageRecordIn
from esp32cam.main import app
from esp32cam.services.storage import StoredImage

API_KEY = "secret123"


# 외부 협력자 대체 (호출 기록용)
class FakeStorage:
    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.result = result or {
            "secure_url": "https://cdn/x.jpg",
            "public_id": "esp32/esp32-1/abc",
            "width": 640,
            "height": 480,
            "bytes": 51200,
        }
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def upload(self, data: bytes, device_id: str) -> StoredImage:
        self.calls.append({"data": data, "device_id": device_id})
        if self.error is not None:
            raise self.error
        return StoredImage.model_validate(self.result)


class FakeRepo:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.records: List[ImageRecord] = []
        self.queries: List[Dict[str, Any]] = []

    async def insert(self, record: ImageRecordIn) -> ImageRecord:
        if self.fail:
            raise RuntimeError("mongo down")
        saved = ImageRecord(id=str(ObjectId()), **record.model_dump())
        self.records.append(saved)
        return saved

    async def recent(self, limit: int, device_id: Optional[str] = None):
        self.queries.append({"limit": limit, "device_id": device_id})
        if self.fail:
            raise RuntimeError("mongo down")
        return []


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[Dict[str, str]] = []

    async def notify_upload(self, device_id: str, photo_url: str) -> None:
        self.calls.append({"device_id": device_id, "photo_url": photo_url})
        if self.fail:
            raise TimeoutError("telegram timed out")


# motor 컬렉션 최소 대체 (insert_one / find().sort().limit().to_list())
class _InsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key: str, direction: int):
        self._docs = sorted(self._docs, key=lambda d: d[key], reverse=direction < 0)
        return self

    def limit(self, n: int):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length: Optional[int] = None):
        return [dict(d) for d in self._docs[:length]]


class FakeCollection:
    def __init__(self):
        self.docs: List[Dict[str, Any]] = []
        self.indexes: List[Any] = []

    async def create_index(self, keys, **options):
        self.indexes.append(keys)
        return str(keys)

    async def insert_one(self, doc: Dict[str, Any]):
        doc.setdefault("_id", ObjectId())
        self.docs.append(dict(doc))
        return _InsertResult(doc["_id"])

    def find(self, query: Dict[str, Any], projection: Optional[Dict[str, int]] = None):
        matched = [d for d in self.docs if all(d.get(k) == v for k, v in query.items())]
        if projection:
            keep = {k for k, v in projection.items() if v}
            if projection.get("_id", 1):
                keep.add("_id")
            matched = [{k: v for k, v in d.items() if k in keep} for d in matched]
        return FakeCursor(matched)


class FakeDB(dict):
    def __missing__(self, name):
        col = self[name] = FakeCollection()
        return col


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, DEVICE_API_KEY=API_KEY)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def repo():
    return FakeRepo()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(test_settings, storage, repo, notifier):
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_image_repo] = lambda: repo
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
