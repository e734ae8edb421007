# esp32cam/main.py
# FastAPI 앱 초기화 및 라우터 설정
# 라우터는 각 기능별로 분리하여 관리

from __future__ import annotations

import asyncio
import logging
from asyncio import sleep
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from esp32cam.api.routes_images import router as images_router   # 저장 이미지 목록
from esp32cam.api.routes_upload import router as upload_router   # ESP32 업로드
from esp32cam.core.config import settings
from esp32cam.core.errors import UploadError
from esp32cam.db.indexes import ensure_indexes
from esp32cam.db.init import close_db, get_db, init_db, is_ready

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI(title="ESP32 Upload Server", version="0.1.0")

# CORS: 기본 전체 허용 (디바이스/대시보드)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

# 앱 시작/종료 이벤트 핸들러
_db_task: Optional[asyncio.Task] = None

async def connect_db_with_retry() -> bool:
    # DB 연결 (기본 최대 20회, 1초 간격) → 인덱스 보장. 실패해도 업로드는 계속 동작
    db = None
    attempts = settings.DB_CONNECT_RETRIES
    for i in range(attempts):
        try:
            db = await init_db()
            log.info("[startup] db ready")
            break
        except Exception as e:
            log.warning("[startup] db init retry %d/%d: %s", i + 1, attempts, e)
            if i + 1 < attempts:
                await sleep(1.0)
    if db is None:
        log.error("[startup] db init failed after retries, metadata will not be saved")
        return False

    try:
        await ensure_indexes()
        log.info("[startup] indexes ensured")
    except Exception as e:
        log.warning("[startup] ensure_indexes failed: %s", e)
    return True

@app.on_event("startup")
async def on_startup() -> None:
    # 연결은 백그라운드로, 서버는 바로 요청을 받는다
    global _db_task
    _db_task = asyncio.create_task(connect_db_with_retry())

@app.on_event("shutdown")
async def on_shutdown() -> None:
    global _db_task
    if _db_task is not None and not _db_task.done():
        _db_task.cancel()
    _db_task = None
    # 몽고db 커넥션 정리
    await close_db()

@app.get("/", response_class=PlainTextResponse)
async def root():
    return "ESP32 Upload Server: OK"

@app.get("/health")
async def health():
    ok = {"status": "ok", "db": "skip"}
    if is_ready():
        try:
            await get_db().command("ping")
            ok["db"] = "ok"
        except Exception as e:
            ok["db"] = f"error: {e}"
    return ok

# 라우터 prefix 없음 (디바이스 펌웨어가 /upload 고정)
app.include_router(upload_router)
app.include_router(images_router)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
