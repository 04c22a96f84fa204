"""
피드 세션 API (Feed Session API)

클라이언트 피드 화면의 라이프사이클 훅을 HTTP로 노출합니다.

엔드포인트:
- PUT /feed/sessions/{session_id}: 목록/위치 변경 → 윈도우 패스 실행
- GET /feed/sessions/{session_id}: 현재 프리로드 상태 조회
- DELETE /feed/sessions/{session_id}: 피드 화면 종료 (모든 프리로드 해제)
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.core.logging import get_logger
from app.models.feed import FeedSessionStatusResponse, FeedSessionUpdateRequest
from app.services.feed_session_service import (
    FeedSessionNotFoundError,
    FeedSessionService,
    get_feed_session_service,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/feed", tags=["Feed"])


@router.put(
    "/sessions/{session_id}",
    response_model=FeedSessionStatusResponse,
    summary="피드 위치 갱신",
    description="피드 목록과 현재 위치를 반영해 프리로드 윈도우를 다시 계산합니다.",
)
async def update_feed_session(
    session_id: str,
    request: FeedSessionUpdateRequest,
    service: FeedSessionService = Depends(get_feed_session_service),
) -> FeedSessionStatusResponse:
    """
    윈도우 패스를 실행하고 결과 상태를 반환합니다.

    현재 위치가 목록 길이를 벗어나면 400을 반환합니다 (빈 목록 제외).
    """
    if request.items and request.current_index >= len(request.items):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"current_index out of range: {request.current_index} "
                f"(items={len(request.items)})"
            ),
        )

    logger.info(
        f"Feed session update: session_id={session_id}, "
        f"index={request.current_index}, items={len(request.items)}"
    )
    return await service.update(session_id, request.items, request.current_index)


@router.get(
    "/sessions/{session_id}",
    response_model=FeedSessionStatusResponse,
    summary="피드 세션 상태 조회",
)
async def get_feed_session(
    session_id: str,
    service: FeedSessionService = Depends(get_feed_session_service),
) -> FeedSessionStatusResponse:
    try:
        return service.status(session_id)
    except FeedSessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Feed session not found: {session_id}",
        )


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="피드 세션 종료",
)
async def close_feed_session(
    session_id: str,
    service: FeedSessionService = Depends(get_feed_session_service),
) -> Response:
    try:
        service.close(session_id)
    except FeedSessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Feed session not found: {session_id}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
