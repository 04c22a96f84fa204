"""
로깅 설정 테스트

프리로드 경로 로거 레벨 분리와 레벨 이름 해석을 검증합니다.
"""

import logging

import pytest

from app.core.config import Settings
from app.core.logging import NOISY_LOGGERS, PRELOAD_LOGGERS, resolve_level, setup_logging

TOUCHED_LOGGERS = ("", "app", "uvicorn", "uvicorn.error", "uvicorn.access") + PRELOAD_LOGGERS + NOISY_LOGGERS


@pytest.fixture(autouse=True)
def restore_logger_levels():
    saved = {name: logging.getLogger(name).level for name in TOUCHED_LOGGERS}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        (None, logging.INFO),
        ("", logging.INFO),
        ("LOUD", logging.INFO),
    ],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_preload_loggers_follow_log_level_by_default():
    setup_logging(Settings(LOG_LEVEL="WARNING"))

    assert logging.getLogger("app").level == logging.WARNING
    for name in PRELOAD_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_preload_log_level_overrides_preload_path_only():
    setup_logging(Settings(LOG_LEVEL="INFO", PRELOAD_LOG_LEVEL="DEBUG"))

    assert logging.getLogger("app").level == logging.INFO
    for name in PRELOAD_LOGGERS:
        assert logging.getLogger(name).level == logging.DEBUG
    assert logging.getLogger("app.services.video_preloader").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("app.api.v1.stream").isEnabledFor(logging.DEBUG)


def test_http_client_loggers_quieted():
    setup_logging(Settings(LOG_LEVEL="DEBUG"))

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
