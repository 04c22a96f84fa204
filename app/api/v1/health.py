"""
헬스체크 API 모듈 (Health Check API Module)

쿠버네티스 및 로드밸런서의 헬스체크를 위한 엔드포인트를 제공합니다.
- /health: Liveness probe - 애플리케이션이 살아있는지 확인
- /health/ready: Readiness probe - 트래픽을 받을 준비가 되었는지 확인

Readiness 체크에서는 스트리밍용 저장소 디렉토리 접근 여부와
현재 피드 세션 수를 함께 반환합니다.
"""

from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.services.feed_session_service import get_feed_session_service

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """
    헬스체크 응답 스키마

    Attributes:
        status: 서비스 상태 ("ok" 또는 "error")
        app: 애플리케이션 이름
        version: 애플리케이션 버전
        env: 실행 환경 (local/dev/prod)
    """

    status: str
    app: str
    version: str
    env: str


class ReadinessResponse(BaseModel):
    """
    Readiness 체크 응답 스키마

    Attributes:
        ready: 서비스가 트래픽을 받을 준비가 되었는지 여부
        checks: 각 의존성 상태 (storage)
        sessions: 현재 피드 세션 수
    """

    ready: bool
    checks: Dict[str, Any] = {}
    sessions: int = 0


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness Check",
    description="애플리케이션이 정상적으로 실행 중인지 확인합니다.",
)
async def health_check(
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Liveness 헬스체크 엔드포인트. 살아있으면 200 OK를 반환합니다."""
    return HealthResponse(
        status="ok",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        env=settings.APP_ENV,
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness Check",
    description="서비스가 트래픽을 받을 준비가 되었는지 확인합니다.",
)
async def readiness_check(
    settings: Settings = Depends(get_settings),
) -> ReadinessResponse:
    """
    Readiness 헬스체크 엔드포인트

    저장소 디렉토리가 존재하고 디렉토리이면 ready=True 입니다.
    """
    storage_dir = Path(settings.VIDEO_STORAGE_DIR)
    storage_ok = storage_dir.is_dir()
    if not storage_ok:
        logger.warning(f"Video storage directory not available: {storage_dir}")

    return ReadinessResponse(
        ready=storage_ok,
        checks={"storage": storage_ok},
        sessions=len(get_feed_session_service()),
    )
