# esp32cam/api/routes_images.py
# 저장된 이미지 메타 최신순 조회 (인증 없음)
# 사용: GET /images?limit=20&deviceId=esp32-1

from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from esp32cam.core.deps import get_image_repo
from esp32cam.services.image_repo import ImageRepository

log = logging.getLogger(__name__)

router = APIRouter(tags=["images"])

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def parse_limit(raw: Optional[str]) -> int:
    # 숫자가 아니거나 1 미만이면 기본값, 100 초과는 100으로
    try:
        n = int(raw) if raw is not None else DEFAULT_LIMIT
    except ValueError:
        return DEFAULT_LIMIT
    if n < 1:
        return DEFAULT_LIMIT
    return min(MAX_LIMIT, n)


@router.get("/images")
async def list_images(
    limit: Optional[str] = None,
    deviceId: Optional[str] = None,
    repo: ImageRepository = Depends(get_image_repo),
):
    try:
        images = await repo.recent(parse_limit(limit), device_id=deviceId or None)
        return {"ok": True, "images": images}
    except Exception as e:
        log.error("GET /images error: %s", e)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
