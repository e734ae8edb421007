# esp32cam/services/storage.py
# Cloudinary 업로드 (디바이스별 폴더 esp32/<deviceId>)
# - SDK가 동기라서 스레드로 넘겨 await
# - 실패는 UpstreamError로 감싸서 올린다 (재시도 없음)

from __future__ import annotations
import asyncio
import io
import logging
from typing import Any, Dict, Optional

import cloudinary
import cloudinary.uploader
from pydantic import BaseModel

from esp32cam.core.config import Settings
from esp32cam.core.errors import UpstreamError

log = logging.getLogger(__name__)


class StoredImage(BaseModel):
    secure_url: str
    public_id: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    bytes: Optional[int] = None


class CloudinaryStorage:
    def __init__(self, cfg: Settings):
        self.folder_prefix = cfg.UPLOAD_FOLDER_PREFIX
        cloudinary.config(
            cloud_name=cfg.CLOUD_NAME,
            api_key=cfg.CLOUD_API_KEY,
            api_secret=cfg.CLOUD_API_SECRET,
            secure=True,
        )

    def folder_for(self, device_id: str) -> str:
        return f"{self.folder_prefix}/{device_id}"

    async def upload(self, data: bytes, device_id: str) -> StoredImage:
        folder = self.folder_for(device_id)
        try:
            result: Dict[str, Any] = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                folder=folder,
                resource_type="image",
            )
        except Exception as e:
            log.error("Cloudinary upload failed (folder=%s): %s", folder, e)
            raise UpstreamError(str(e)) from e

        if not result or not result.get("secure_url"):
            raise UpstreamError("Cloudinary returned no secure_url")

        return StoredImage.model_validate(result)
