"""
피드 세션 서비스 (Feed Session Service)

클라이언트 피드 화면 하나를 세션 하나로 보고,
세션마다 전용 VideoPreloader + FeedWindowPolicy를 둡니다.
세션끼리 상주 한도를 나눠 쓰지 않습니다.

정책:
- 세션은 첫 갱신 요청 시 생성
- 세션 수가 FEED_MAX_SESSIONS를 넘으면 가장 오래 갱신되지 않은 세션을 종료
- 세션 종료 = clear_all() (핸들/버퍼 해제)
- STREAM_BASE_URL이 설정되어 있으면 영상 URL을 /stream-video 경유 URL로 바꿔 프리로드
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from app.core.config import get_settings
from app.core.logging import get_logger
from app.models.feed import (
    FeedItem,
    FeedSessionStatusResponse,
    PreloadedVideoInfo,
)
from app.services.feed_window import FeedWindowPolicy
from app.services.video_preloader import VideoPreloader
from app.utils.video_url import get_streaming_video_url

logger = get_logger(__name__)

PreloaderFactory = Callable[[], VideoPreloader]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FeedSession:
    """세션 하나의 상태."""

    session_id: str
    policy: FeedWindowPolicy
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


class FeedSessionNotFoundError(KeyError):
    """존재하지 않는 세션."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(session_id)


class FeedSessionService:
    """
    세션별 프리로드 윈도우 관리.

    Usage:
        service = FeedSessionService()
        status = await service.update("sess-1", items, current_index=0)
        service.close("sess-1")
    """

    def __init__(
        self,
        max_sessions: Optional[int] = None,
        preloader_factory: Optional[PreloaderFactory] = None,
    ) -> None:
        settings = get_settings()
        self._max_sessions = (
            max_sessions if max_sessions is not None else settings.FEED_MAX_SESSIONS
        )
        if self._max_sessions < 1:
            raise ValueError(f"max_sessions must be >= 1: {self._max_sessions}")
        self._preloader_factory: PreloaderFactory = preloader_factory or VideoPreloader
        self._sessions: "OrderedDict[str, FeedSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def has_session(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _get_or_create(self, session_id: str) -> FeedSession:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session

        session = FeedSession(
            session_id=session_id,
            policy=FeedWindowPolicy(preloader=self._preloader_factory()),
        )
        self._sessions[session_id] = session
        logger.info(f"Feed session created: session_id={session_id}")

        while len(self._sessions) > self._max_sessions:
            oldest_id = next(iter(self._sessions))
            logger.info(f"Feed session limit reached, closing oldest: {oldest_id}")
            self.close(oldest_id)
        return session

    async def update(
        self,
        session_id: str,
        items: Sequence[FeedItem],
        current_index: int,
    ) -> FeedSessionStatusResponse:
        """세션의 목록/위치를 갱신하고 윈도우 패스를 실행합니다."""
        session = self._get_or_create(session_id)
        session.updated_at = _utcnow()
        await session.policy.update(
            items=self._playback_items(items), current_index=current_index
        )
        return self.status(session_id)

    @staticmethod
    def _playback_items(items: Sequence[FeedItem]) -> List[FeedItem]:
        """
        STREAM_BASE_URL이 설정되어 있으면 source_url을 스트리밍 엔드포인트 URL로 바꿉니다.

        /videos/ 경로가 없는 URL은 그대로 둡니다.
        """
        base_url = get_settings().stream_base_url
        if not base_url:
            return list(items)
        return [
            item.model_copy(
                update={"source_url": get_streaming_video_url(item.source_url, base_url)}
            )
            for item in items
        ]

    def status(self, session_id: str) -> FeedSessionStatusResponse:
        """
        세션 상태를 반환합니다.

        Raises:
            FeedSessionNotFoundError: 세션이 없는 경우
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise FeedSessionNotFoundError(session_id)

        policy = session.policy
        resident = []
        for url in policy.preloader.resident_urls():
            resource = policy.preloader.get_preloaded_video(url)
            if resource is None:
                continue
            resident.append(
                PreloadedVideoInfo(
                    source_url=resource.source_url,
                    is_ready=resource.is_ready,
                    buffered_seconds=round(resource.buffered_seconds, 3),
                )
            )

        return FeedSessionStatusResponse(
            session_id=session_id,
            current_index=policy.current_index,
            item_count=len(policy.items),
            preload_status=policy.preload_status,
            resident=resident,
        )

    def close(self, session_id: str) -> None:
        """
        세션을 종료하고 프리로드 항목을 모두 해제합니다.

        Raises:
            FeedSessionNotFoundError: 세션이 없는 경우
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise FeedSessionNotFoundError(session_id)
        session.policy.close()
        logger.info(f"Feed session closed: session_id={session_id}")

    def close_all(self) -> None:
        for session_id in list(self._sessions.keys()):
            self.close(session_id)


# =============================================================================
# 싱글턴 인스턴스
# =============================================================================

_feed_session_service: Optional[FeedSessionService] = None


def get_feed_session_service() -> FeedSessionService:
    """FeedSessionService 싱글턴 인스턴스를 반환합니다."""
    global _feed_session_service
    if _feed_session_service is None:
        _feed_session_service = FeedSessionService()
    return _feed_session_service


def clear_feed_session_service() -> None:
    """모든 세션을 종료하고 싱글턴을 폐기합니다 (앱 종료/테스트용)."""
    global _feed_session_service
    if _feed_session_service is not None:
        _feed_session_service.close_all()
        _feed_session_service = None
