# esp32cam/services/notify.py
# 텔레그램 sendPhoto 알림 (best-effort)
# - 토큰/채팅 ID 둘 다 설정된 경우에만 사용
# - 타임아웃 기본 10초 (요청 전체 기준), 실패는 호출 측에서 경고로만 처리

from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import httpx

from esp32cam.core.config import Settings

log = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


def format_local_time(now: datetime, tz_name: str) -> str:
    # en-IN 로케일 표기: 18/10/2026, 3:04:05 pm
    local = now.astimezone(ZoneInfo(tz_name))
    hour12 = local.hour % 12 or 12
    ampm = "am" if local.hour < 12 else "pm"
    return f"{local:%d/%m/%Y}, {hour12}:{local:%M:%S} {ampm}"


def build_caption(device_id: str, tz_name: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"Visitor at {device_id} — {format_local_time(now, tz_name)}"


class TelegramNotifier:
    def __init__(
        self,
        token: str,
        chat_id: str,
        timeout: float = 10.0,
        tz_name: str = "Asia/Kolkata",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        api_base: str = TELEGRAM_API,
    ):
        self.token = token
        self.chat_id = chat_id
        self.timeout = timeout
        self.tz_name = tz_name
        self.api_base = api_base
        self._transport = transport  # 테스트용 MockTransport 주입

    @classmethod
    def from_settings(cls, cfg: Settings) -> Optional["TelegramNotifier"]:
        if not cfg.notify_enabled:
            return None
        return cls(
            token=cfg.TELEGRAM_BOT_TOKEN,
            chat_id=cfg.TELEGRAM_CHAT_ID,
            timeout=cfg.NOTIFY_TIMEOUT_SECONDS,
            tz_name=cfg.NOTIFY_TIMEZONE,
        )

    @property
    def send_photo_url(self) -> str:
        return f"{self.api_base}/bot{self.token}/sendPhoto"

    async def send_photo(self, photo_url: str, caption: str) -> None:
        # httpx timeout은 단계별(connect/read/...)이라 전체 호출은 wait_for로 한 번 더 묶는다
        await asyncio.wait_for(self._post_photo(photo_url, caption), self.timeout)
        log.info("Telegram notified (chat_id=%s)", self.chat_id)

    async def _post_photo(self, photo_url: str, caption: str) -> None:
        params = {"chat_id": self.chat_id, "photo": photo_url, "caption": caption}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await client.post(self.send_photo_url, params=params)
            r.raise_for_status()

    async def notify_upload(self, device_id: str, photo_url: str) -> None:
        await self.send_photo(photo_url, build_caption(device_id, self.tz_name))
