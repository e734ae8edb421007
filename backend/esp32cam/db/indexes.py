# 컬렉션 인덱스 생성
# 앱 스타트업에서 한 번 ensure_indexes()를 await로 호출한다.

from esp32cam.db.init import get_db
from esp32cam.db.models.image import IMAGES_COLLECTION

async def ensure_indexes():
    db = get_db()

    # 디바이스 필터 + 최신순 목록 조회
    await db[IMAGES_COLLECTION].create_index("deviceId")
    await db[IMAGES_COLLECTION].create_index([("createdAt", -1)])
    await db[IMAGES_COLLECTION].create_index([("deviceId", 1), ("createdAt", -1)])
