# esp32cam/api/routes_upload.py
# ESP32 → 원시 image/* 바디 업로드

from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from esp32cam.core.config import Settings, get_settings
from esp32cam.core.deps import DeviceCredentials, get_device_credentials, get_upload_pipeline
from esp32cam.core.errors import PayloadTooLarge, UploadError
from esp32cam.services.upload import UploadPipeline, check_api_key, validate_payload

log = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])


async def read_image_body(request: Request, max_bytes: int) -> bytes:
    """
    image/* 요청 바디를 최대 max_bytes까지 읽는다.
    다른 Content-Type은 바디 없음으로 취급 (→ 400).
    """
    content_type = request.headers.get("content-type", "").lower()
    if not content_type.startswith("image/"):
        return b""

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLarge(f"Payload too large (limit {max_bytes} bytes)")

    buf = bytearray()
    async for chunk in request.stream():
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise PayloadTooLarge(f"Payload too large (limit {max_bytes} bytes)")
    return bytes(buf)


@router.post("/upload")
async def upload_image(
    request: Request,
    creds: DeviceCredentials = Depends(get_device_credentials),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
    cfg: Settings = Depends(get_settings),
):
    try:
        log.info("Received upload (device=%s)", creds.device_id)
        check_api_key(creds.api_key, cfg.DEVICE_API_KEY)

        body = validate_payload(await read_image_body(request, cfg.MAX_UPLOAD_BYTES))

        outcome = await pipeline.run(body, creds.device_id)
        return outcome.to_response()
    except UploadError:
        # 앱 레벨 핸들러에서 {"error": detail}로 변환
        raise
    except Exception as e:
        log.exception("Upload error: %s", e)
        return JSONResponse(status_code=500, content={"error": str(e)})
