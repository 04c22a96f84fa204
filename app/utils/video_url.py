"""
스트리밍 URL 변환 유틸리티

스토리지 공개 URL(.../videos/<파일명>)을 Range 요청을 지원하는
/stream-video 엔드포인트 URL로 바꿉니다. 일부 모바일 플레이어는
스토리지가 돌려주는 헤더로는 구간 요청을 제대로 못 하기 때문입니다.
"""

import re
from typing import Optional
from urllib.parse import quote

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_VIDEO_PATH_PATTERN = re.compile(r"/videos/(.+)$")


def extract_video_filename(storage_url: str) -> Optional[str]:
    """스토리지 URL에서 videos/ 이후의 파일 경로를 꺼냅니다. 없으면 None."""
    match = _VIDEO_PATH_PATTERN.search(storage_url)
    if not match or not match.group(1):
        return None
    return match.group(1)


def get_streaming_video_url(storage_url: str, base_url: Optional[str] = None) -> str:
    """
    스토리지 URL을 스트리밍 엔드포인트 URL로 변환합니다.

    Args:
        storage_url: 예) https://project.example.co/storage/v1/object/public/videos/a.mp4
        base_url: 스트리밍 서버 베이스 URL (기본값: settings.STREAM_BASE_URL)

    Returns:
        str: "<base_url>/stream-video?file=<인코딩된 파일명>",
             변환할 수 없으면 원본 URL
    """
    filename = extract_video_filename(storage_url)
    if filename is None:
        logger.warning(f"Could not extract filename from URL: {storage_url}")
        return storage_url

    base = (base_url or get_settings().stream_base_url or "").rstrip("/")
    if not base:
        logger.warning("STREAM_BASE_URL is not configured, keeping storage URL")
        return storage_url

    return f"{base}/stream-video?file={quote(filename, safe='')}"
