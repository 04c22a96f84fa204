"""
API v1 Package

Version 1 API endpoints.

Included routers:
    - health: Health check endpoints (/health, /health/ready)
    - feed: 피드 세션 프리로드 윈도우 endpoints (/feed/sessions/*)
    - stream: Range 지원 영상 스트리밍 endpoint (/stream-video)
"""

from app.api.v1 import feed, health, stream

__all__ = [
    "health",
    "feed",
    "stream",
]
