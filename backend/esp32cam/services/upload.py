# esp32cam/services/upload.py
# 업로드 파이프라인: 인증 → 페이로드 검사 → 스토리지 → (선택)메타 저장 → (선택)알림
# 메타 저장/알림은 best-effort: 실패해도 경고만 남기고 업로드 성공 응답은 유지

from __future__ import annotations
import hmac
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from esp32cam.core.errors import (
    BadRequest,
    NotificationWarning,
    PersistenceWarning,
    Unauthorized,
)
from esp32cam.db.models.image import ImageRecord, ImageRecordIn
from esp32cam.services.image_repo import ImageRepository
from esp32cam.services.notify import TelegramNotifier
from esp32cam.services.storage import CloudinaryStorage, StoredImage

log = logging.getLogger(__name__)

SideEffectWarning = Union[PersistenceWarning, NotificationWarning]


def check_api_key(supplied: Optional[str], expected: Optional[str]) -> None:
    # 서버에 키가 없으면 어떤 요청도 통과 못함
    if not supplied or not expected:
        raise Unauthorized("Unauthorized: invalid api key")
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise Unauthorized("Unauthorized: invalid api key")


def validate_payload(body: Optional[bytes]) -> bytes:
    if not body:
        raise BadRequest("No image uploaded")
    return body


@dataclass
class UploadOutcome:
    stored: StoredImage
    record: Optional[ImageRecord] = None
    warnings: List[SideEffectWarning] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        resp: Dict[str, Any] = {
            "ok": True,
            "url": self.stored.secure_url,
            "public_id": self.stored.public_id,
            "width": self.stored.width,
            "height": self.stored.height,
            "bytes": self.stored.bytes,
        }
        if self.record is not None:
            resp["imageId"] = self.record.id
            resp["savedAt"] = self.record.createdAt.isoformat()
        return resp


class UploadPipeline:
    def __init__(
        self,
        storage: CloudinaryStorage,
        repo: Optional[ImageRepository] = None,
        notifier: Optional[TelegramNotifier] = None,
    ):
        self.storage = storage
        self.repo = repo
        self.notifier = notifier

    async def run(self, data: bytes, device_id: str) -> UploadOutcome:
        # 스토리지 실패(UpstreamError)는 그대로 올라감 → 레코드/알림 없음
        stored = await self.storage.upload(data, device_id)
        outcome = UploadOutcome(stored=stored)

        saved = await self.save_record(stored, device_id)
        if isinstance(saved, PersistenceWarning):
            outcome.warnings.append(saved)
        else:
            outcome.record = saved

        if self.notifier is not None:
            warning = await self.notify(stored, device_id)
            if warning is not None:
                outcome.warnings.append(warning)

        return outcome

    async def save_record(
        self, stored: StoredImage, device_id: str
    ) -> Union[ImageRecord, PersistenceWarning]:
        if self.repo is None:
            log.warning("Metadata store not configured, skipping save")
            return PersistenceWarning("metadata store not configured")
        record = ImageRecordIn(
            deviceId=device_id,
            url=stored.secure_url,
            public_id=stored.public_id,
            width=stored.width,
            height=stored.height,
            bytes=stored.bytes,
        )
        try:
            saved = await self.repo.insert(record)
        except Exception as e:
            log.warning("Failed to save image metadata to MongoDB: %s", e)
            return PersistenceWarning(str(e))
        log.info("Saved image metadata to MongoDB, id=%s", saved.id)
        return saved

    async def notify(self, stored: StoredImage, device_id: str) -> Optional[NotificationWarning]:
        try:
            await self.notifier.notify_upload(device_id, stored.secure_url)
        except Exception as e:
            log.warning("Telegram notify failed: %s", e)
            return NotificationWarning(str(e))
        return None
