"""
공용 예외 및 에러 타입 정의 (Core Exceptions Module)

에러 분류:
- INVALID_SOURCE: 빈 URL 등 프리로드 입력 전제조건 위반
- LOAD_FAILED: 미디어 핸들 로드 실패 (네트워크/디코드)
- BAD_RANGE: 만족할 수 없는 Range 요청

로드 실패와 해제 실패는 프리로드 매니저 안에서 로그로만 남고
호출자에게 전파되지 않습니다. 매니저 밖으로 전파되는 것은 INVALID_SOURCE 뿐입니다.

사용 방법:
    from app.core.exceptions import InvalidSourceError

    if not url:
        raise InvalidSourceError("source url must not be empty")
"""

from enum import Enum
from typing import Optional


class ErrorType(str, Enum):
    """에러 타입 분류."""

    INVALID_SOURCE = "INVALID_SOURCE"
    LOAD_FAILED = "LOAD_FAILED"
    BAD_RANGE = "BAD_RANGE"


class InvalidSourceError(ValueError):
    """
    프리로드 소스 URL 전제조건 위반.

    빈 키로 캐싱하면 URL당 하나의 항목이라는 불변식이 깨지므로
    상태를 바꾸기 전에 즉시 실패합니다.
    """

    def __init__(self, message: str, source_url: Optional[str] = None) -> None:
        self.message = message
        self.source_url = source_url
        self.error_type = ErrorType.INVALID_SOURCE
        super().__init__(f"Invalid Source: {message}")


class MediaLoadError(Exception):
    """
    미디어 핸들 로드 실패.

    HttpMediaHandle이 'error' 이벤트에 실어 보내는 예외입니다.
    프리로드 매니저는 이 예외를 다시 던지지 않습니다.

    Attributes:
        source_url: 로드하려던 URL
        status_code: HTTP 상태 코드 (해당 시)
        original_error: 원본 예외
    """

    def __init__(
        self,
        source_url: str,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.source_url = source_url
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
        self.error_type = ErrorType.LOAD_FAILED

        detail = f"{ErrorType.LOAD_FAILED.value}: {message} ({source_url})"
        if status_code:
            detail += f" (HTTP {status_code})"
        super().__init__(detail)

    def __repr__(self) -> str:
        return (
            f"MediaLoadError(source_url='{self.source_url}', "
            f"message='{self.message}', status_code={self.status_code})"
        )


class RangeNotSatisfiableError(Exception):
    """Range 헤더가 파일 크기와 맞지 않을 때 발생합니다."""

    def __init__(self, range_header: str, file_size: int) -> None:
        self.range_header = range_header
        self.file_size = file_size
        self.error_type = ErrorType.BAD_RANGE
        super().__init__(
            f"Range Not Satisfiable: {range_header} (size={file_size})"
        )
