"""
Services package

Preload business logic.

Modules:
    - video_preloader: 상주 수 제한 영상 프리로드 풀 (VideoPreloader)
    - feed_window: 현재 위치 기준 프리로드/해제 윈도우 (FeedWindowPolicy)
    - feed_session_service: 세션별 윈도우 관리 (FeedSessionService)

Import directly from submodules:
    from app.services.video_preloader import VideoPreloader
"""

__all__: list = []
