"""
HTTP Range 헤더 파싱

"bytes=<start>-<end>" 형식의 단일 구간만 지원합니다.
형식이 맞지 않는 헤더는 무시하고 전체 응답으로 처리합니다 (None 반환).
"""

import re
from typing import NamedTuple, Optional

from app.core.exceptions import RangeNotSatisfiableError

_RANGE_PATTERN = re.compile(r"bytes=(\d+)-(\d*)")


class ByteRange(NamedTuple):
    start: int
    end: int  # inclusive

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, file_size: int) -> str:
        return f"bytes {self.start}-{self.end}/{file_size}"


def parse_range_header(range_header: Optional[str], file_size: int) -> Optional[ByteRange]:
    """
    Range 헤더를 파싱합니다.

    Args:
        range_header: 요청의 Range 헤더 값
        file_size: 파일 크기 (바이트)

    Returns:
        ByteRange 또는 None (헤더 없음/형식 불일치)

    Raises:
        RangeNotSatisfiableError: 시작 위치가 파일 밖이거나 end < start
    """
    if not range_header:
        return None
    match = _RANGE_PATTERN.search(range_header)
    if not match:
        return None

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else file_size - 1
    end = min(end, file_size - 1)

    if start >= file_size or end < start:
        raise RangeNotSatisfiableError(range_header, file_size)
    return ByteRange(start=start, end=end)
