"""
클라이언트 모듈 (Clients Module)

외부 리소스와 통신하기 위한 클라이언트 계층입니다.

구성:
    - http_client: 공용 httpx.AsyncClient 싱글턴 관리
    - media_handle: 프리로드용 미디어 핸들 (MediaHandle 프로토콜, HttpMediaHandle)
"""

from app.clients.http_client import (
    close_async_http_client,
    get_async_http_client,
)

__all__ = [
    "get_async_http_client",
    "close_async_http_client",
]
