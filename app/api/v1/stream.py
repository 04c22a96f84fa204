"""
영상 스트리밍 API (Video Streaming API)

저장소 디렉토리의 영상을 HTTP Range 요청을 지원하며 내려줍니다.
프리로드 핸들과 모바일 플레이어는 이 엔드포인트로 구간 요청을 보냅니다.

- GET /stream-video?file=<파일명>
    - file 누락: 400
    - 파일 없음 / 저장소 밖 경로: 404
    - Range: bytes=a-b → 206 Partial Content
    - Range 없음 (또는 형식 불일치) → 200 전체
    - 파일 밖 구간 → 416
"""

from pathlib import Path
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from app.core.config import Settings, get_settings
from app.core.exceptions import RangeNotSatisfiableError
from app.core.logging import get_logger
from app.utils.byte_range import parse_range_header

logger = get_logger(__name__)

router = APIRouter(tags=["Stream"])

_READ_CHUNK_SIZE = 1024 * 1024
_VIDEO_MEDIA_TYPE = "video/mp4"


def _resolve_storage_path(storage_dir: str, filename: str) -> Optional[Path]:
    """저장소 디렉토리 안의 실제 파일 경로를 반환합니다. 밖으로 벗어나면 None."""
    try:
        root = Path(storage_dir).resolve()
        candidate = (root / filename).resolve()
        if root != candidate and root not in candidate.parents:
            return None
        if not candidate.is_file():
            return None
    except (ValueError, OSError) as e:
        # NUL 바이트, 너무 긴 경로 등
        logger.warning(f"Invalid video path: file={filename!r}, error={e}")
        return None
    return candidate


def _iter_file(path: Path, start: int, end: int) -> Iterator[bytes]:
    with open(path, "rb") as f:
        f.seek(start)
        remaining = end - start + 1
        while remaining > 0:
            data = f.read(min(_READ_CHUNK_SIZE, remaining))
            if not data:
                break
            remaining -= len(data)
            yield data


@router.get(
    "/stream-video",
    summary="영상 스트리밍",
    description="Range 헤더를 지원하는 영상 스트리밍 엔드포인트입니다.",
)
async def stream_video(
    request: Request,
    file: Optional[str] = Query(None, description="저장소 내 영상 파일명"),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    if not file:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing file parameter",
        )

    path = _resolve_storage_path(settings.VIDEO_STORAGE_DIR, file)
    if path is None:
        logger.warning(f"Video not found: file={file}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found",
        )

    file_size = path.stat().st_size
    base_headers = {
        "Accept-Ranges": "bytes",
        "Cache-Control": f"public, max-age={settings.STREAM_CACHE_MAX_AGE}",
    }

    try:
        byte_range = parse_range_header(request.headers.get("range"), file_size)
    except RangeNotSatisfiableError as e:
        raise HTTPException(
            status_code=416,
            detail=str(e),
            headers={"Content-Range": f"bytes */{file_size}"},
        )

    if byte_range is not None:
        logger.debug(f"Stream 206: file={file}, range={byte_range.start}-{byte_range.end}")
        return StreamingResponse(
            _iter_file(path, byte_range.start, byte_range.end),
            status_code=status.HTTP_206_PARTIAL_CONTENT,
            media_type=_VIDEO_MEDIA_TYPE,
            headers={
                **base_headers,
                "Content-Range": byte_range.content_range(file_size),
                "Content-Length": str(byte_range.length),
            },
        )

    return StreamingResponse(
        _iter_file(path, 0, file_size - 1),
        status_code=status.HTTP_200_OK,
        media_type=_VIDEO_MEDIA_TYPE,
        headers={**base_headers, "Content-Length": str(file_size)},
    )
