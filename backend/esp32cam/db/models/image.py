# esp32cam/db/models/image.py
# 이미지 메타데이터 문서 (바이너리는 저장하지 않음, Cloudinary URL/크기만)
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

IMAGES_COLLECTION = "images"
DEFAULT_DEVICE_ID = "unknown_device"

# GET /images 응답에 노출하는 필드만 (_id 등 내부 필드 제외)
LIST_PROJECTION = {
    "_id": 0,
    "url": 1,
    "deviceId": 1,
    "createdAt": 1,
    "public_id": 1,
    "width": 1,
    "height": 1,
    "bytes": 1,
}

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

# 저장용 스키마 (필드명은 컬렉션 키와 동일)
class ImageRecordIn(BaseModel):
    deviceId: str = DEFAULT_DEVICE_ID
    url: str
    public_id: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    bytes: Optional[int] = None
    createdAt: datetime = Field(default_factory=_utcnow)

# insert 이후 (_id 부여됨)
class ImageRecord(ImageRecordIn):
    id: str
