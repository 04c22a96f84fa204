"""
피드 윈도우 정책 (Feed Window Policy)

"정렬된 목록 안의 현재 위치"를 프리로드/해제 동작으로 바꿔
앞쪽 몇 개 영상만 따뜻하게 유지하는 모듈입니다.

한 번의 패스 (목록 또는 현재 위치가 바뀔 때마다):
1. 프리로드 집합 = [i, i+1, i+2] (범위 내, 이 순서가 곧 우선순위)
2. 순차 프리로드 (앞 항목을 기다린 뒤 다음 항목 시작)
3. preloader.cleanup()
4. 유지 집합 = {i-1, i, i+1, i+2} 밖의 항목 해제
5. 화면 종료 시 close() → clear_all()

항목 상태: absent → loading → ready, ready → absent (해제),
loading/ready → absent (cleanup 제거). 에러 상태는 없으며
실패한 항목은 absent로 남아 다음 패스에서 다시 시도됩니다.

진행 중인 프리로드는 위치가 바뀌어도 취소하지 않습니다.
오래된 프리로드는 끝까지 진행되고 다음 패스에서 정리됩니다.
"""

from typing import Dict, List, Optional, Sequence, Set

from app.core.config import get_settings
from app.core.logging import get_logger
from app.models.feed import FeedItem
from app.services.video_preloader import (
    PreloadedResource,
    VideoPreloader,
    get_video_preloader,
)

logger = get_logger(__name__)


class FeedWindowPolicy:
    """
    현재 위치 기준 프리로드 윈도우를 관리합니다.

    Usage:
        policy = FeedWindowPolicy(preloader)
        await policy.update(items=items, current_index=0)
        await policy.set_current_index(3)
        policy.close()
    """

    def __init__(
        self,
        preloader: Optional[VideoPreloader] = None,
        ahead_count: Optional[int] = None,
        keep_behind_count: Optional[int] = None,
    ) -> None:
        """
        Args:
            preloader: 사용할 프리로드 매니저 (없으면 공용 인스턴스)
            ahead_count: 현재 항목 이후 프리로드할 개수 (기본값: 2)
            keep_behind_count: 현재 항목 이전에 유지할 개수 (기본값: 1)
        """
        settings = get_settings()
        self._preloader = preloader if preloader is not None else get_video_preloader()
        self._ahead_count = (
            ahead_count if ahead_count is not None else settings.PRELOAD_AHEAD_COUNT
        )
        self._keep_behind_count = (
            keep_behind_count
            if keep_behind_count is not None
            else settings.PRELOAD_KEEP_BEHIND_COUNT
        )
        self._items: List[FeedItem] = []
        self._current_index = 0
        self._preload_status: Dict[str, bool] = {}
        self._closed = False

    @property
    def preloader(self) -> VideoPreloader:
        return self._preloader

    @property
    def items(self) -> List[FeedItem]:
        return list(self._items)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def preload_status(self) -> Dict[str, bool]:
        return dict(self._preload_status)

    @property
    def closed(self) -> bool:
        return self._closed

    def is_preloaded(self, item_id: str) -> bool:
        return self._preload_status.get(item_id, False)

    def get_preloaded_video(self, source_url: str) -> Optional[PreloadedResource]:
        return self._preloader.get_preloaded_video(source_url)

    # =========================================================================
    # Window 계산
    # =========================================================================

    def preload_indices(self, current_index: int, item_count: int) -> List[int]:
        """현재 위치부터 앞쪽으로 프리로드할 인덱스 (우선순위 순서)."""
        candidates = range(current_index, current_index + self._ahead_count + 1)
        return [i for i in candidates if 0 <= i < item_count]

    def keep_indices(self, current_index: int) -> Set[int]:
        """해제하지 않고 유지할 인덱스 집합."""
        return set(
            range(
                current_index - self._keep_behind_count,
                current_index + self._ahead_count + 1,
            )
        )

    # =========================================================================
    # 패스 실행
    # =========================================================================

    async def update(
        self,
        items: Optional[Sequence[FeedItem]] = None,
        current_index: Optional[int] = None,
    ) -> Dict[str, bool]:
        """
        목록/위치를 갱신하고 윈도우 패스를 한 번 실행합니다.

        Args:
            items: 새 피드 목록 (None이면 기존 목록 유지)
            current_index: 새 현재 위치 (None이면 기존 위치 유지)

        Returns:
            Dict[str, bool]: 패스 이후 항목별 프리로드 상태

        Raises:
            RuntimeError: close() 이후 호출된 경우
        """
        if self._closed:
            raise RuntimeError("FeedWindowPolicy is closed")
        if items is not None:
            self._items = list(items)
        if current_index is not None:
            self._current_index = current_index

        await self._run_pass(list(self._items), self._current_index)
        return self.preload_status

    async def set_current_index(self, current_index: int) -> Dict[str, bool]:
        return await self.update(current_index=current_index)

    async def set_items(self, items: Sequence[FeedItem]) -> Dict[str, bool]:
        return await self.update(items=items)

    async def _run_pass(self, items: List[FeedItem], current_index: int) -> None:
        if not items:
            return

        # 1~2. 우선순위 순서로 하나씩 프리로드
        for index in self.preload_indices(current_index, len(items)):
            item = items[index]
            try:
                resource = await self._preloader.preload_video(
                    item.source_url, item.poster_url
                )
            except Exception as exc:
                logger.error(
                    f"Preload failed: item_id={item.id}, url={item.source_url}, error={exc}"
                )
                continue
            if resource.is_ready:
                self._preload_status[item.id] = True
            else:
                self._preload_status.pop(item.id, None)

        # 3. 상주 한도 적용
        self._preloader.cleanup()

        # 4. 유지 집합 밖의 항목 해제 (유지 항목과 URL을 공유하면 건너뜀)
        keep = self.keep_indices(current_index)
        kept_urls = {item.source_url for i, item in enumerate(items) if i in keep}
        released = 0
        for index, item in enumerate(items):
            if index in keep:
                continue
            if item.source_url not in kept_urls:
                if item.source_url in self._preloader:
                    released += 1
                self._preloader.release_video(item.source_url)
            self._preload_status.pop(item.id, None)

        # cleanup으로 밀려난 항목의 상태 정리
        for item in items:
            if (
                item.id in self._preload_status
                and self._preloader.get_preloaded_video(item.source_url) is None
            ):
                del self._preload_status[item.id]

        logger.debug(
            f"Window pass done: index={current_index}, released={released}, "
            f"resident={len(self._preloader)}"
        )

    def close(self) -> None:
        """피드 화면 종료 시 호출합니다. 모든 프리로드 항목을 해제합니다."""
        self._preloader.clear_all()
        self._preload_status.clear()
        self._closed = True
