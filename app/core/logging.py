"""
로깅 설정 모듈 (Logging Configuration Module)

Python 기본 logging 모듈을 사용하여 애플리케이션 로깅을 설정합니다.
uvicorn의 기본 로거와 충돌하지 않도록 구성되어 있습니다.

로그 포맷: 시간 | 로그레벨 | 로거이름 | 메시지

프리로드 경로 로거(PRELOAD_LOGGERS)는 PRELOAD_LOG_LEVEL로 따로 조절합니다.
준비 신호(progress 등)는 영상 하나당 수십 번 발생하므로 평소에는 INFO로 두고
문제를 추적할 때만 이 경로를 DEBUG로 내립니다.
"""

import logging
import sys
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.core.config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# PRELOAD_LOG_LEVEL이 적용되는 로거
PRELOAD_LOGGERS = (
    "app.services.video_preloader",
    "app.services.feed_window",
    "app.clients.media_handle",
)

# 요청/청크마다 INFO 로그를 남기는 라이브러리 로거
NOISY_LOGGERS = ("httpx", "httpcore")


def resolve_level(level_name: Optional[str], default: int = logging.INFO) -> int:
    """레벨 이름을 logging 상수로 바꿉니다. 비어 있거나 잘못된 이름이면 default."""
    if not level_name:
        return default
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else default


def setup_logging(settings: "Settings") -> None:
    """
    애플리케이션 로깅을 설정합니다.

    Args:
        settings: 애플리케이션 설정 인스턴스

    설정 내용:
        - 루트/app/uvicorn 로거 레벨을 settings.LOG_LEVEL로 설정
        - 프리로드 경로 로거는 settings.PRELOAD_LOG_LEVEL (없으면 LOG_LEVEL)
        - httpx/httpcore는 WARNING 이상만
        - 콘솔 핸들러 (stdout) 하나만 추가
    """
    log_level = resolve_level(settings.LOG_LEVEL)
    preload_level = resolve_level(settings.PRELOAD_LOG_LEVEL, default=log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(log_level, preload_level))

    # 기존 핸들러가 있으면 제거 (중복 로그 방지)
    # 단, uvicorn이 이미 설정한 핸들러는 유지
    for handler in root_logger.handlers[:]:
        if not isinstance(handler, logging.StreamHandler):
            root_logger.removeHandler(handler)

    if not root_logger.handlers:
        # 레벨 필터링은 로거 쪽에서 하므로 핸들러는 모두 통과
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(console_handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "app"):
        logging.getLogger(logger_name).setLevel(log_level)

    for logger_name in PRELOAD_LOGGERS:
        logging.getLogger(logger_name).setLevel(preload_level)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger("app").info(
        f"Logging configured: level={logging.getLevelName(log_level)}, "
        f"preload_level={logging.getLevelName(preload_level)}, "
        f"app={settings.APP_NAME}, env={settings.APP_ENV}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    지정된 이름의 로거를 반환합니다.

    Args:
        name: 로거 이름 (보통 __name__ 사용)

    사용 예시:
        from app.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Preloader ready")
    """
    return logging.getLogger(name)
