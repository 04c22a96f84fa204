"""
Models package

Pydantic models for request/response schemas.

Modules:
    - feed: 피드 항목 및 피드 세션 요청/응답 모델
"""

from app.models.feed import (
    FeedItem,
    FeedSessionStatusResponse,
    FeedSessionUpdateRequest,
    PreloadedVideoInfo,
)

__all__ = [
    "FeedItem",
    "FeedSessionUpdateRequest",
    "FeedSessionStatusResponse",
    "PreloadedVideoInfo",
]
