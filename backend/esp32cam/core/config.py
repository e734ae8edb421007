# 환경변수 로딩 (.env)
# 앱 시작 시 1회 읽고, 핸들러에는 get_settings 의존성으로 주입한다.
from typing import List, Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Mongo (메타데이터 저장, 선택)
    MONGODB_URI: str = "mongodb://127.0.0.1:27017/iot"
    MONGODB_DB: str = "iot"
    DB_CONNECT_RETRIES: int = 20

    # Cloudinary (이미지 저장)
    CLOUD_NAME: Optional[str] = None
    CLOUD_API_KEY: Optional[str] = None
    CLOUD_API_SECRET: Optional[str] = None
    UPLOAD_FOLDER_PREFIX: str = "esp32"

    # 디바이스 공유 키 (없으면 모든 업로드 401)
    DEVICE_API_KEY: Optional[str] = None
    MAX_UPLOAD_BYTES: int = 3 * 1024 * 1024  # 3MB

    # 텔레그램 알림 (토큰/채팅 둘 다 있어야 전송)
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_CHAT_ID: Optional[str] = None
    NOTIFY_TIMEOUT_SECONDS: float = 10.0
    NOTIFY_TIMEZONE: str = "Asia/Kolkata"

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    class Config:
        env_file = ".env"

    @property
    def notify_enabled(self) -> bool:
        return bool(self.TELEGRAM_BOT_TOKEN and self.TELEGRAM_CHAT_ID)

settings = Settings()

def get_settings() -> Settings:
    # 라우터용 의존성 (테스트에서 dependency_overrides로 교체)
    return settings
