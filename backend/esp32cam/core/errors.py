# 업로드 파이프라인 오류 분류
# - UploadError 계열: 요청을 즉시 중단하고 {"error": detail} 로 응답
# - *Warning 계열: 실패해도 업로드 성공은 유지 (로그만 남김)

from __future__ import annotations
from dataclasses import dataclass


class UploadError(Exception):
    status_code: int = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthorized(UploadError):
    status_code = 401


class BadRequest(UploadError):
    status_code = 400


class PayloadTooLarge(UploadError):
    status_code = 413


class UpstreamError(UploadError):
    # 스토리지(Cloudinary) 업로드 실패
    status_code = 500


@dataclass(frozen=True)
class PersistenceWarning:
    message: str


@dataclass(frozen=True)
class NotificationWarning:
    message: str
