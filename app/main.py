"""
FastAPI 애플리케이션 메인 모듈

reelfeed-preloader 게이트웨이의 진입점입니다.
FastAPI 인스턴스를 생성하고, 라우터를 등록하며, 미들웨어를 설정합니다.

구성:
    - 피드 세션 API: 클라이언트 피드 위치에 맞춰 영상 프리로드 윈도우 유지
    - 스트리밍 API: Range 요청을 지원하는 영상 전송
    - 헬스체크
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import feed, health, stream
from app.clients.http_client import close_async_http_client
from app.core.config import get_settings
from app.core.logging import get_logger, setup_logging
from app.services.feed_session_service import clear_feed_session_service
from app.services.video_preloader import clear_video_preloader

# 설정 및 로거 초기화
settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 라이프사이클 관리

    시작 시:
        - 로깅 설정
        - 프리로드 설정값 출력

    종료 시:
        - 모든 피드 세션 종료 (프리로드 핸들/버퍼 해제)
        - 공용 프리로더 해제
        - 공용 HTTP 클라이언트 종료
    """
    setup_logging(settings)
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.APP_ENV}")
    logger.info(
        f"Preload: max_resident={settings.PRELOAD_MAX_RESIDENT}, "
        f"ready_buffer={settings.PRELOAD_READY_BUFFER_SEC}s, "
        f"timeout={settings.PRELOAD_TIMEOUT_MS}ms, "
        f"ahead={settings.PRELOAD_AHEAD_COUNT}, "
        f"keep_behind={settings.PRELOAD_KEEP_BEHIND_COUNT}"
    )
    logger.info(f"VIDEO_STORAGE_DIR: {settings.VIDEO_STORAGE_DIR}")

    try:
        yield
    finally:
        # 핸들이 네트워크 리소스를 잡고 있으므로 프로세스 종료에 맡기지 않음
        clear_feed_session_service()
        clear_video_preloader()
        await close_async_http_client()
        logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "숏폼 세로 영상 피드용 프리로드 게이트웨이\n\n"
        "- 피드 세션별 영상 프리로드 윈도우 관리\n"
        "- Range 요청을 지원하는 영상 스트리밍"
    ),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

origins = (
    settings.CORS_ORIGINS.split(",")
    if settings.CORS_ORIGINS != "*"
    else ["*"]
)

# 플레이어가 구간 응답 헤더를 읽을 수 있도록 노출
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Length", "Content-Range", "Accept-Ranges"],
)

# 라우터 등록
# - GET /health, /health/ready
app.include_router(health.router, prefix="", tags=["Health"])

# - PUT/GET/DELETE /feed/sessions/{session_id}
app.include_router(feed.router)

# - GET /stream-video?file=...
app.include_router(stream.router)

