"""
영상 프리로드 매니저 (Video Preloader)

피드에서 곧 재생될 영상을 숨겨진 미디어 핸들로 미리 버퍼링해 두고,
"이 URL을 바로 재생할 수 있는가"에 다시 받지 않고 답하는 모듈입니다.

주요 기능:
- URL당 하나의 핸들만 생성 (동시 호출도 같은 항목 반환)
- 준비 신호 경합: canplaythrough / 0.5초 버퍼 / 3초 타임아웃 중 먼저 온 것
- 로드 실패 시에도 reject 하지 않고 미준비 상태로 resolve
- 삽입 순서 기준으로 오래된 항목부터 제거 (cleanup)

정책:
- 상주 한도(max_resident)는 cleanup() 직후에만 보장됩니다.
  프리로드와 cleanup 사이에는 잠시 초과할 수 있습니다.
- 재조회는 삽입 순서를 갱신하지 않습니다 (접근 시각 기반 LRU가 아님).
- 해제 중 예외는 로그만 남기고 항목은 항상 제거됩니다.
- 호출자가 취소되어도 준비 경합(타임아웃 포함)은 끝까지 진행됩니다.

사용 예시:
    preloader = VideoPreloader()
    resource = await preloader.preload_video(url, poster_url)
    if resource.is_ready:
        ...
    preloader.cleanup()
    preloader.clear_all()  # 피드 화면 종료 시
"""

import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from app.clients.media_handle import HttpMediaHandle, MediaEvent, MediaHandle
from app.core.config import get_settings
from app.core.exceptions import InvalidSourceError
from app.core.logging import get_logger

logger = get_logger(__name__)

HandleFactory = Callable[[], MediaHandle]


@dataclass(eq=False)
class PreloadedResource:
    """
    미리 버퍼링 중인 영상 하나.

    Attributes:
        source_url: 매니저 내 고유 키
        handle: 이 항목이 단독 소유하는 미디어 핸들
        is_ready: 재생 시도 가능 여부 (한 번 True가 되면 되돌아가지 않음)
        buffered_seconds: 처음부터 연속으로 버퍼링된 길이 (초)
    """

    source_url: str
    handle: MediaHandle
    is_ready: bool = False
    buffered_seconds: float = 0.0
    _settle: Optional[Callable[[bool], None]] = field(default=None, repr=False)

    def mark_ready(self) -> None:
        self.is_ready = True

    def record_buffered(self, seconds: float) -> None:
        if seconds > self.buffered_seconds:
            self.buffered_seconds = seconds


class VideoPreloader:
    """
    상주 수가 제한된 영상 프리로드 풀.

    백킹 맵은 외부에 노출하지 않으며 모든 변경은
    preload_video / release_video / cleanup / clear_all 을 거칩니다.
    get_preloaded_video 결과는 읽기 전용으로 빌려 쓰는 참조입니다.
    """

    def __init__(
        self,
        max_resident: Optional[int] = None,
        ready_buffer_sec: Optional[float] = None,
        timeout_sec: Optional[float] = None,
        handle_factory: Optional[HandleFactory] = None,
    ) -> None:
        """
        Args:
            max_resident: cleanup 이후 유지할 최대 항목 수 (기본값: 설정값 3)
            ready_buffer_sec: 준비 완료 버퍼 임계값 (기본값: 0.5초)
            timeout_sec: 강제 준비 완료까지의 시간 (기본값: 3초)
            handle_factory: 미디어 핸들 생성 함수 (기본값: HttpMediaHandle)
        """
        settings = get_settings()
        self._max_resident = (
            max_resident if max_resident is not None else settings.PRELOAD_MAX_RESIDENT
        )
        self._ready_buffer_sec = (
            ready_buffer_sec
            if ready_buffer_sec is not None
            else settings.PRELOAD_READY_BUFFER_SEC
        )
        self._timeout_sec = (
            timeout_sec if timeout_sec is not None else settings.preload_timeout_sec
        )
        self._handle_factory: HandleFactory = handle_factory or HttpMediaHandle
        self._entries: "OrderedDict[str, PreloadedResource]" = OrderedDict()

    @property
    def max_resident(self) -> int:
        return self._max_resident

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def resident_urls(self) -> List[str]:
        """현재 상주 중인 URL 목록 (삽입 순서, 복사본)."""
        return list(self._entries.keys())

    # =========================================================================
    # Preload
    # =========================================================================

    async def preload_video(
        self,
        url: str,
        poster_url: Optional[str] = None,
    ) -> PreloadedResource:
        """
        영상을 미리 버퍼링하고 준비되면 항목을 반환합니다.

        이미 항목이 있으면 (로딩 중이든 준비 완료든) 즉시 그 항목을 반환합니다.
        항목은 첫 대기 지점 이전에 등록되므로 동시 호출도 핸들을 하나만 만듭니다.

        Args:
            url: 영상 URL (필수, 빈 문자열 불가)
            poster_url: 핸들에 표시할 포스터 이미지 URL

        Returns:
            PreloadedResource: 준비되었거나, 타임아웃/에러로 확정된 항목

        Raises:
            InvalidSourceError: url이 비어 있는 경우
        """
        if not url or not url.strip():
            raise InvalidSourceError("source url must not be empty", source_url=url)

        existing = self._entries.get(url)
        if existing is not None:
            logger.debug(f"Preload reuse: url={url}, ready={existing.is_ready}")
            return existing

        handle = self._handle_factory()
        handle.muted = True
        handle.plays_inline = True
        handle.cross_origin = "anonymous"
        handle.hidden = True
        if poster_url:
            handle.poster = poster_url

        resource = PreloadedResource(source_url=url, handle=handle)
        self._entries[url] = resource
        logger.debug(f"Preload start: url={url}, resident={len(self._entries)}")

        loop = asyncio.get_running_loop()
        done: "asyncio.Future[PreloadedResource]" = loop.create_future()
        timer: Optional[asyncio.TimerHandle] = None
        settled = False

        def settle(ready: bool) -> None:
            # 세 신호 중 첫 번째만 반영
            nonlocal settled
            if settled:
                return
            settled = True
            if ready:
                resource.mark_ready()
            if timer is not None:
                timer.cancel()
            resource._settle = None
            if not done.done():
                done.set_result(resource)

        def on_can_play_through(*_: Any) -> None:
            resource.record_buffered(handle.buffered_seconds())
            settle(True)

        def on_progress(*_: Any) -> None:
            resource.record_buffered(handle.buffered_seconds())
            if resource.buffered_seconds >= self._ready_buffer_sec:
                settle(True)

        def on_error(error: Optional[BaseException] = None, *_: Any) -> None:
            logger.warning(f"Preload error: url={url}, error={error}")
            settle(False)

        def on_timeout() -> None:
            if not settled:
                logger.info(
                    f"Preload timeout, forcing ready: url={url}, "
                    f"buffered={resource.buffered_seconds:.2f}s"
                )
            settle(True)

        resource._settle = settle
        handle.add_listener(MediaEvent.CAN_PLAY_THROUGH, on_can_play_through, once=True)
        handle.add_listener(MediaEvent.PROGRESS, on_progress)
        handle.add_listener(MediaEvent.ERROR, on_error)
        timer = loop.call_later(self._timeout_sec, on_timeout)

        handle.set_source(url)
        try:
            handle.load()
        except Exception as exc:
            on_error(exc)

        # 호출자가 취소되어도 준비 경합은 계속 진행되어야 함
        return await asyncio.shield(done)

    # =========================================================================
    # Lookup / Release
    # =========================================================================

    def get_preloaded_video(self, url: str) -> Optional[PreloadedResource]:
        """항목을 조회합니다. 네트워크 활동이나 부수효과가 없습니다."""
        return self._entries.get(url)

    def release_video(self, url: str) -> None:
        """
        항목을 해제합니다.

        재생 정지 → 소스 분리 및 버퍼 해제 → 핸들 파기 → 항목 제거 순서입니다.
        항목이 없으면 아무것도 하지 않습니다. 해제 중 예외는 로그만 남깁니다.
        """
        self._evict(url)

    def _evict(self, url: str) -> None:
        # release_video / cleanup / clear_all 공통 해제 경로
        resource = self._entries.pop(url, None)
        if resource is None:
            return
        handle = resource.handle
        try:
            handle.pause()
            handle.flush()
            handle.destroy()
        except Exception as exc:
            logger.warning(f"Error releasing video: url={url}, error={exc}")
        finally:
            # 로딩 중에 해제되면 대기 중인 호출자를 미준비 상태로 깨움
            if resource._settle is not None:
                resource._settle(False)
        logger.debug(f"Released: url={url}, resident={len(self._entries)}")

    def cleanup(self) -> None:
        """상주 한도를 넘는 만큼 가장 먼저 삽입된 항목부터 해제합니다."""
        overflow = len(self._entries) - self._max_resident
        if overflow <= 0:
            return
        evicted = list(self._entries.keys())[:overflow]
        for url in evicted:
            self._evict(url)
        logger.debug(f"Cleanup evicted {len(evicted)} item(s): {evicted}")

    def clear_all(self) -> None:
        """모든 항목을 무조건 해제합니다."""
        count = len(self._entries)
        for url in list(self._entries.keys()):
            self._evict(url)
        if count:
            logger.info(f"Cleared all preloaded videos: count={count}")

    def stats(self) -> Dict[str, Any]:
        """프리로드 풀 상태를 반환합니다."""
        ready = sum(1 for r in self._entries.values() if r.is_ready)
        return {
            "resident": len(self._entries),
            "ready": ready,
            "max_resident": self._max_resident,
            "urls": self.resident_urls(),
        }


# =============================================================================
# 싱글턴 인스턴스
# =============================================================================

_video_preloader: Optional[VideoPreloader] = None


def get_video_preloader() -> VideoPreloader:
    """
    프로세스 공용 VideoPreloader 인스턴스를 반환합니다.

    피드 화면 종료 시 clear_video_preloader()를 명시적으로 호출해야 합니다.
    프로세스 종료에 의존하지 않습니다.
    """
    global _video_preloader
    if _video_preloader is None:
        _video_preloader = VideoPreloader()
    return _video_preloader


def clear_video_preloader() -> None:
    """공용 인스턴스의 모든 항목을 해제하고 인스턴스를 폐기합니다."""
    global _video_preloader
    if _video_preloader is not None:
        _video_preloader.clear_all()
        _video_preloader = None
