"""
pytest conftest.py - Unit Test Configuration

Unit tests run WITHOUT network access.
Media handles are replaced by FakeMediaHandle so that readiness events
(progress / canplaythrough / error) are fired explicitly by each test.
"""

import os

# Set environment variables BEFORE importing any app modules
os.environ.pop("STREAM_BASE_URL", None)
os.environ["APP_ENV"] = "local"

from app.core.config import clear_settings_cache

clear_settings_cache()


from typing import List, Optional

import pytest

from app.clients.media_handle import BaseMediaHandle, MediaEvent


class FakeMediaHandle(BaseMediaHandle):
    """테스트용 미디어 핸들.

    load()는 네트워크 활동 없이 기록만 남깁니다.
    auto_ready=True 이면 load() 시점에 canplaythrough를 바로 발생시킵니다.
    """

    def __init__(self, factory: "FakeHandleFactory") -> None:
        super().__init__()
        self._factory = factory
        self.buffered = 0.0
        self.load_calls = 0
        self.pause_calls = 0
        self.flush_calls = 0
        self.fail_on_flush = False

    def load(self) -> None:
        self.load_calls += 1
        self._factory.load_order.append(self.src)
        if self._factory.auto_error:
            self.emit(MediaEvent.ERROR, RuntimeError("boom"))
        elif self._factory.auto_ready:
            self.fire_can_play_through(1.0)

    def buffered_seconds(self) -> float:
        return self.buffered

    def pause(self) -> None:
        self.pause_calls += 1
        super().pause()

    def flush(self) -> None:
        self.flush_calls += 1
        if self.fail_on_flush:
            raise RuntimeError("flush failed")
        self.src = None
        self.buffered = 0.0

    # 테스트에서 이벤트를 직접 발생시키는 헬퍼
    def fire_progress(self, buffered: float) -> None:
        self.buffered = buffered
        self.emit(MediaEvent.PROGRESS)

    def fire_can_play_through(self, buffered: Optional[float] = None) -> None:
        if buffered is not None:
            self.buffered = buffered
        self.emit(MediaEvent.CAN_PLAY_THROUGH)

    def fire_error(self, error: Optional[Exception] = None) -> None:
        self.emit(MediaEvent.ERROR, error or RuntimeError("network error"))


class FakeHandleFactory:
    """생성된 FakeMediaHandle과 load 순서를 기록하는 팩토리."""

    def __init__(self, auto_ready: bool = False, auto_error: bool = False) -> None:
        self.auto_ready = auto_ready
        self.auto_error = auto_error
        self.created: List[FakeMediaHandle] = []
        self.load_order: List[Optional[str]] = []

    def __call__(self) -> FakeMediaHandle:
        handle = FakeMediaHandle(self)
        self.created.append(handle)
        return handle


@pytest.fixture
def handle_factory() -> FakeHandleFactory:
    """이벤트를 수동으로 발생시키는 핸들 팩토리."""
    return FakeHandleFactory()


@pytest.fixture
def ready_handle_factory() -> FakeHandleFactory:
    """load() 즉시 준비 완료되는 핸들 팩토리."""
    return FakeHandleFactory(auto_ready=True)


# =============================================================================
# Singleton cleanup fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_singletons():
    """각 테스트 후 싱글톤 인스턴스를 정리합니다."""
    clear_settings_cache()

    yield

    from app.services.feed_session_service import clear_feed_session_service
    from app.services.video_preloader import clear_video_preloader

    clear_feed_session_service()
    clear_video_preloader()
    clear_settings_cache()
