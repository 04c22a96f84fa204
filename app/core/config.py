"""
설정 모듈 (Configuration Module)

pydantic-settings를 사용하여 환경변수 및 .env 파일에서 설정 값을 로드합니다.
싱글턴 패턴으로 설정 인스턴스를 캐싱하여 애플리케이션 전체에서 재사용합니다.

주요 설정 그룹:
- 앱 기본 정보 / 로깅
- 프리로드 매니저 (상주 한도, 준비 임계값, 타임아웃)
- 피드 윈도우 정책 (선행/후행 범위)
- 스트리밍 엔드포인트 (저장소 경로, 공개 URL)
"""

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _empty_str_to_none(v: Any) -> Any:
    """빈 문자열을 None으로 변환합니다."""
    if v == "":
        return None
    return v


class Settings(BaseSettings):
    """
    애플리케이션 설정 클래스

    환경변수 또는 .env 파일에서 값을 읽어옵니다.
    모든 필드에 기본값이 있으므로 환경변수 없이도 동작합니다.
    """

    # 앱 기본 정보
    APP_NAME: str = "reelfeed-preloader"
    APP_ENV: str = "local"  # local / dev / prod
    APP_VERSION: str = "0.1.0"

    # 로깅 설정
    LOG_LEVEL: str = "INFO"

    # 프리로드 경로(매니저/윈도우/미디어 핸들) 로거 레벨. 비어 있으면 LOG_LEVEL을 따름
    # 예: LOG_LEVEL=INFO, PRELOAD_LOG_LEVEL=DEBUG → 준비 신호/해제 추적만 상세히
    PRELOAD_LOG_LEVEL: Optional[str] = None

    # =========================================================================
    # 프리로드 매니저 설정
    # =========================================================================
    # cleanup() 이후 메모리에 유지할 최대 영상 수
    PRELOAD_MAX_RESIDENT: int = Field(3, ge=1)

    # 이 길이(초) 이상 버퍼링되면 재생 준비 완료로 판단
    PRELOAD_READY_BUFFER_SEC: float = Field(0.5, ge=0.0)

    # 준비 신호가 오지 않을 때 강제로 준비 완료 처리하는 시간 (밀리초)
    PRELOAD_TIMEOUT_MS: int = Field(3000, ge=0)

    # HTTP 핸들에서 버퍼 바이트 → 초 환산에 쓰는 가정 비트레이트 (kbps)
    PRELOAD_ASSUMED_BITRATE_KBPS: int = Field(2500, gt=0)

    # HTTP 핸들 청크 크기 (바이트)
    PRELOAD_CHUNK_SIZE: int = Field(64 * 1024, gt=0)

    # HTTP 핸들 하나가 메모리에 쌓는 최대 바이트 (0이면 제한 없음)
    # 도달하면 다운로드를 멈추고 canplaythrough를 발생시킴
    PRELOAD_MAX_BUFFER_BYTES: int = Field(8 * 1024 * 1024, ge=0)

    # =========================================================================
    # 피드 윈도우 정책 설정
    # =========================================================================
    # 현재 위치 이후로 미리 받아둘 항목 수 (현재 항목 제외)
    PRELOAD_AHEAD_COUNT: int = Field(2, ge=0)

    # 현재 위치 이전으로 해제하지 않고 유지할 항목 수
    PRELOAD_KEEP_BEHIND_COUNT: int = Field(1, ge=0)

    # 게이트웨이가 동시에 유지하는 피드 세션 수
    FEED_MAX_SESSIONS: int = Field(100, ge=1)

    # =========================================================================
    # 스트리밍 엔드포인트 설정
    # =========================================================================
    # 스트리밍 URL 변환 시 사용할 공개 베이스 URL (미설정 시 변환하지 않음)
    STREAM_BASE_URL: Optional[HttpUrl] = None

    # /stream-video가 파일을 읽어오는 디렉토리
    VIDEO_STORAGE_DIR: str = "./video_storage"

    # Cache-Control max-age (초)
    STREAM_CACHE_MAX_AGE: int = 3600

    # =========================================================================
    # CORS 설정
    # =========================================================================
    # 허용할 Origin (쉼표로 구분)
    CORS_ORIGINS: str = "*"

    @field_validator("STREAM_BASE_URL", "PRELOAD_LOG_LEVEL", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        """빈 문자열을 None으로 변환하여 Optional 필드 처리."""
        return _empty_str_to_none(v)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # .env에 정의되지 않은 추가 필드 무시
    )

    @property
    def preload_timeout_sec(self) -> float:
        """프리로드 타임아웃을 초 단위로 반환합니다."""
        return self.PRELOAD_TIMEOUT_MS / 1000.0

    @property
    def stream_base_url(self) -> Optional[str]:
        """스트리밍 베이스 URL (끝의 / 제거)."""
        if not self.STREAM_BASE_URL:
            return None
        return str(self.STREAM_BASE_URL).rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """
    설정 인스턴스를 반환합니다.

    lru_cache를 사용하여 싱글턴처럼 동작하며,
    최초 호출 시에만 Settings 인스턴스를 생성합니다.

    Returns:
        Settings: 애플리케이션 설정 인스턴스

    사용 예시:
        from app.core.config import get_settings
        settings = get_settings()
        print(settings.PRELOAD_MAX_RESIDENT)
    """
    return Settings()


def clear_settings_cache() -> None:
    """
    설정 캐시를 클리어합니다.

    테스트 환경에서 환경변수 변경 후 Settings를 다시 로드할 때 사용합니다.
    """
    get_settings.cache_clear()
