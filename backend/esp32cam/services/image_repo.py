# esp32cam/services/image_repo.py
# 이미지 메타데이터 저장/조회 (Mongo images 컬렉션)

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from esp32cam.db.init import get_db
from esp32cam.db.models.image import (
    IMAGES_COLLECTION,
    LIST_PROJECTION,
    ImageRecord,
    ImageRecordIn,
)


class ImageRepository:
    """
    images 컬렉션 접근 래퍼.
    DB 핸들은 호출 시점에 가져온다 (스타트업에서 연결 실패해도 앱은 뜨고,
    실제 저장/조회 시점에 예외가 난다).
    """

    def __init__(
        self,
        db_getter: Callable[[], AsyncIOMotorDatabase] = get_db,
        collection: str = IMAGES_COLLECTION,
    ):
        self._db_getter = db_getter
        self._collection = collection

    def _col(self) -> AsyncIOMotorCollection:
        return self._db_getter()[self._collection]

    async def insert(self, record: ImageRecordIn) -> ImageRecord:
        doc = record.model_dump()
        result = await self._col().insert_one(doc)
        return ImageRecord(id=str(result.inserted_id), **record.model_dump())

    async def recent(self, limit: int, device_id: Optional[str] = None) -> List[Dict[str, Any]]:
        # 최신순 limit개, 노출 필드만
        query: Dict[str, Any] = {}
        if device_id:
            query["deviceId"] = device_id

        cursor = (
            self._col()
            .find(query, LIST_PROJECTION)
            .sort("createdAt", -1)
            .limit(limit)
        )
        docs = await cursor.to_list(length=limit)

        for doc in docs:
            created = doc.get("createdAt")
            if isinstance(created, datetime):
                doc["createdAt"] = created.isoformat()
        return docs
