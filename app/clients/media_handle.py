"""
미디어 핸들 모듈 (Media Handle Module)

프리로드 매니저가 소유하는 "재생 가능한 리소스"의 인터페이스와
httpx 기반 구현을 제공합니다. 디코딩/ABR은 다루지 않고
소스 지정, 로드, 재생/정지, 버퍼 해제와 이벤트 통지만 담당합니다.

이벤트:
    - canplaythrough: 끝까지 끊김 없이 재생 가능 (HTTP 핸들에서는 본문 수신 완료)
    - progress: 버퍼가 늘어남
    - error: 로드 실패 (MediaLoadError 전달)

사용 방법:
    handle = HttpMediaHandle()
    handle.add_listener(MediaEvent.PROGRESS, on_progress)
    handle.set_source("https://cdn.example.com/videos/a.mp4")
    handle.load()
"""

import asyncio
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import httpx

from app.clients.http_client import get_async_http_client
from app.core.config import get_settings
from app.core.exceptions import MediaLoadError
from app.core.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[..., None]


class MediaEvent(str, Enum):
    """미디어 핸들 이벤트 이름."""

    CAN_PLAY_THROUGH = "canplaythrough"
    PROGRESS = "progress"
    ERROR = "error"


class MediaHandle(Protocol):
    """
    프리로드 매니저가 요구하는 미디어 핸들 인터페이스.

    구현체는 숨겨진(렌더링되지 않는) 상태로 생성되며,
    하나의 프리로드 항목만이 소유합니다.
    """

    muted: bool
    plays_inline: bool
    cross_origin: Optional[str]
    hidden: bool
    poster: Optional[str]
    src: Optional[str]

    def add_listener(self, event: MediaEvent, listener: Listener, once: bool = False) -> None: ...

    def set_source(self, url: str) -> None: ...

    def load(self) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def buffered_seconds(self) -> float: ...

    def flush(self) -> None: ...

    def destroy(self) -> None: ...


class BaseMediaHandle:
    """
    리스너 관리와 공통 속성을 제공하는 핸들 베이스 클래스.

    리스너 하나가 예외를 던져도 나머지 리스너 호출은 계속됩니다.
    """

    def __init__(self) -> None:
        self.muted = True
        self.plays_inline = True
        self.cross_origin: Optional[str] = "anonymous"
        self.hidden = True
        self.poster: Optional[str] = None
        self.src: Optional[str] = None
        self.paused = True
        self.destroyed = False
        self._listeners: Dict[MediaEvent, List[Tuple[Listener, bool]]] = defaultdict(list)

    def add_listener(self, event: MediaEvent, listener: Listener, once: bool = False) -> None:
        self._listeners[event].append((listener, once))

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def listener_count(self, event: MediaEvent) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: MediaEvent, *args: Any) -> None:
        """이벤트를 등록된 리스너에게 전달합니다. once 리스너는 호출 전에 제거됩니다."""
        registered = self._listeners.get(event)
        if not registered:
            return
        self._listeners[event] = [(fn, once) for fn, once in registered if not once]
        for listener, _ in registered:
            try:
                listener(*args)
            except Exception as exc:
                logger.warning(
                    f"Media listener failed: event={event.value}, src={self.src}, error={exc}"
                )

    def set_source(self, url: str) -> None:
        self.src = url

    def play(self) -> None:
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def destroy(self) -> None:
        self.flush()
        self.remove_all_listeners()
        self.destroyed = True

    # 하위 클래스 구현
    def load(self) -> None:
        raise NotImplementedError

    def buffered_seconds(self) -> float:
        raise NotImplementedError

    def flush(self) -> None:
        raise NotImplementedError


class HttpMediaHandle(BaseMediaHandle):
    """
    httpx 스트리밍으로 영상을 미리 받아 메모리에 버퍼링하는 핸들.

    버퍼 길이(초)는 실제 디코딩 없이 가정 비트레이트로 환산합니다:
        buffered_seconds = buffered_bytes / (bitrate_kbps * 1000 / 8)

    버퍼가 max_buffer_bytes에 도달하면 다운로드를 멈추고 canplaythrough를
    발생시킵니다. 나머지 구간은 재생 시점에 플레이어가 받습니다.

    Attributes:
        buffered_bytes: 현재까지 받은 바이트 수
        complete: 본문을 끝까지 받았는지 여부
        capped: 버퍼 상한에 걸려 다운로드를 멈췄는지 여부
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        bitrate_kbps: Optional[int] = None,
        chunk_size: Optional[int] = None,
        max_buffer_bytes: Optional[int] = None,
    ) -> None:
        super().__init__()
        settings = get_settings()
        self._client = client
        self._bytes_per_second = (
            (bitrate_kbps or settings.PRELOAD_ASSUMED_BITRATE_KBPS) * 1000 / 8
        )
        self._chunk_size = chunk_size or settings.PRELOAD_CHUNK_SIZE
        self._max_buffer_bytes = (
            max_buffer_bytes
            if max_buffer_bytes is not None
            else settings.PRELOAD_MAX_BUFFER_BYTES
        )
        self._buffer = bytearray()
        self._task: Optional[asyncio.Task] = None
        self.complete = False
        self.capped = False

    @property
    def buffered_bytes(self) -> int:
        return len(self._buffer)

    def buffered_seconds(self) -> float:
        return len(self._buffer) / self._bytes_per_second

    def load(self) -> None:
        """
        현재 src로 백그라운드 다운로드를 시작합니다.

        이미 진행 중인 다운로드가 있으면 취소하고 버퍼를 비운 뒤 새로 시작합니다.
        실행 중인 이벤트 루프 안에서 호출되어야 합니다.
        """
        self._cancel_fetch()
        self._buffer = bytearray()
        self.complete = False
        self.capped = False
        if not self.src:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._fetch(self.src))

    def flush(self) -> None:
        """다운로드를 중단하고 소스와 버퍼를 해제합니다."""
        self._cancel_fetch()
        self.src = None
        self._buffer = bytearray()
        self.complete = False
        self.capped = False

    def _cancel_fetch(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _fetch(self, url: str) -> None:
        client = self._client or get_async_http_client()
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes(self._chunk_size):
                    if self._max_buffer_bytes:
                        chunk = chunk[: self._max_buffer_bytes - len(self._buffer)]
                    self._buffer.extend(chunk)
                    self.emit(MediaEvent.PROGRESS)
                    if self._max_buffer_bytes and len(self._buffer) >= self._max_buffer_bytes:
                        self.capped = True
                        break
            if self.capped:
                logger.debug(f"Media buffer cap reached: src={url}, bytes={len(self._buffer)}")
            else:
                self.complete = True
                logger.debug(f"Media fully buffered: src={url}, bytes={len(self._buffer)}")
            self.emit(MediaEvent.CAN_PLAY_THROUGH)
        except httpx.HTTPStatusError as e:
            self.emit(
                MediaEvent.ERROR,
                MediaLoadError(
                    source_url=url,
                    message="unexpected response status",
                    status_code=e.response.status_code,
                    original_error=e,
                ),
            )
        except httpx.HTTPError as e:
            self.emit(
                MediaEvent.ERROR,
                MediaLoadError(source_url=url, message=str(e) or type(e).__name__, original_error=e),
            )
        except Exception as e:
            # 잘못된 URL 등 httpx 밖의 예외도 error 이벤트로 통지
            logger.exception(f"Unexpected media load failure: src={url}")
            self.emit(
                MediaEvent.ERROR,
                MediaLoadError(source_url=url, message=f"{type(e).__name__}: {e}", original_error=e),
            )
