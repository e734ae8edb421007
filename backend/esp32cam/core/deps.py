# 공용 의존성 (디바이스 자격 정보, 외부 협력자 생성)
# 테스트에서는 app.dependency_overrides로 스토리지/저장소/알림을 교체한다.
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Query

from esp32cam.core.config import Settings, get_settings
from esp32cam.db.models.image import DEFAULT_DEVICE_ID
from esp32cam.services.image_repo import ImageRepository
from esp32cam.services.notify import TelegramNotifier
from esp32cam.services.storage import CloudinaryStorage
from esp32cam.services.upload import UploadPipeline

@dataclass
class DeviceCredentials:
    api_key: Optional[str]
    device_id: str

def get_device_credentials(
    x_api_key: Optional[str] = Header(None),
    x_device_id: Optional[str] = Header(None),
    apiKey: Optional[str] = Query(None),
    deviceId: Optional[str] = Query(None),
) -> DeviceCredentials:
    # 헤더 우선, 없으면 쿼리스트링
    return DeviceCredentials(
        api_key=x_api_key or apiKey,
        device_id=x_device_id or deviceId or DEFAULT_DEVICE_ID,
    )

def get_storage(cfg: Settings = Depends(get_settings)) -> CloudinaryStorage:
    return CloudinaryStorage(cfg)

def get_image_repo() -> ImageRepository:
    return ImageRepository()

def get_notifier(cfg: Settings = Depends(get_settings)) -> Optional[TelegramNotifier]:
    return TelegramNotifier.from_settings(cfg)

def get_upload_pipeline(
    storage: CloudinaryStorage = Depends(get_storage),
    repo: ImageRepository = Depends(get_image_repo),
    notifier: Optional[TelegramNotifier] = Depends(get_notifier),
) -> UploadPipeline:
    return UploadPipeline(storage=storage, repo=repo, notifier=notifier)
