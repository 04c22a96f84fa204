"""
피드 모델 (Feed Models)

윈도우 정책이 소비하는 피드 항목과 게이트웨이 API 요청/응답 스키마입니다.
피드 목록의 조회, 페이지네이션, 정렬은 외부(데이터 소스)의 책임입니다.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class FeedItem(BaseModel):
    """
    피드 항목 하나.

    Attributes:
        id: 안정적인 항목 ID
        source_url: 영상 URL (프리로드 키)
        poster_url: 포스터 이미지 URL (선택)
    """

    id: str = Field(..., min_length=1, description="피드 항목 ID")
    source_url: str = Field(..., min_length=1, description="영상 URL")
    poster_url: Optional[str] = Field(None, description="포스터 이미지 URL")

    @field_validator("source_url")
    @classmethod
    def source_url_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("source_url must not be blank")
        return v


class FeedSessionUpdateRequest(BaseModel):
    """피드 세션 위치/목록 갱신 요청."""

    items: List[FeedItem] = Field(default_factory=list, description="정렬된 피드 항목")
    current_index: int = Field(0, ge=0, description="현재 재생 위치")


class PreloadedVideoInfo(BaseModel):
    """상주 중인 프리로드 항목 요약."""

    source_url: str
    is_ready: bool
    buffered_seconds: float


class FeedSessionStatusResponse(BaseModel):
    """
    피드 세션 상태 응답.

    Attributes:
        session_id: 세션 ID
        current_index: 현재 위치
        item_count: 피드 항목 수
        preload_status: 항목 ID → 준비 여부
        resident: 상주 중인 프리로드 항목 (삽입 순서)
    """

    session_id: str
    current_index: int
    item_count: int
    preload_status: Dict[str, bool] = Field(default_factory=dict)
    resident: List[PreloadedVideoInfo] = Field(default_factory=list)
