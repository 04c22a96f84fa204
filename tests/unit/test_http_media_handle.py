"""
HttpMediaHandle 테스트

httpx.MockTransport로 네트워크 없이 스트리밍 다운로드를 흉내냅니다.

테스트 항목:
- 청크마다 progress, 본문 완료 시 canplaythrough
- 버퍼 바이트 → 초 환산
- 4xx / 네트워크 에러 → error 이벤트 (MediaLoadError)
- flush 후 버퍼/소스 해제
- VideoPreloader와 결합 시 준비/미준비 확정
"""

import asyncio
from typing import List

import httpx
import pytest

from app.clients.media_handle import BaseMediaHandle, HttpMediaHandle, MediaEvent
from app.core.exceptions import MediaLoadError
from app.services.video_preloader import VideoPreloader

VIDEO_BYTES = b"\x00" * 4000


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=VIDEO_BYTES, headers={"Content-Type": "video/mp4"})


def not_found_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, json={"error": "Video not found"})


def connect_error_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def broken_transport_handler(request: httpx.Request) -> httpx.Response:
    raise RuntimeError("transport bug")


async def wait_for_event(handle: BaseMediaHandle, event: MediaEvent) -> list:
    loop = asyncio.get_running_loop()
    fut = loop.create_future()

    def on_event(*args):
        if not fut.done():
            fut.set_result(list(args))

    handle.add_listener(event, on_event, once=True)
    return await asyncio.wait_for(fut, timeout=2.0)


class TestHttpMediaHandle:

    @pytest.mark.asyncio
    async def test_download_emits_progress_and_can_play_through(self):
        async with make_client(ok_handler) as client:
            # 8 kbps = 1000 bytes/s
            handle = HttpMediaHandle(client=client, bitrate_kbps=8, chunk_size=1000)
            progress_events: List[float] = []
            handle.add_listener(
                MediaEvent.PROGRESS, lambda: progress_events.append(handle.buffered_seconds())
            )

            handle.set_source("https://cdn.example.com/videos/a.mp4")
            handle.load()
            await wait_for_event(handle, MediaEvent.CAN_PLAY_THROUGH)

            assert handle.complete is True
            assert handle.buffered_bytes == len(VIDEO_BYTES)
            assert handle.buffered_seconds() == pytest.approx(4.0)
            assert progress_events == sorted(progress_events)
            assert len(progress_events) >= 1

    @pytest.mark.asyncio
    async def test_http_error_emits_media_load_error(self):
        async with make_client(not_found_handler) as client:
            handle = HttpMediaHandle(client=client)
            handle.set_source("https://cdn.example.com/videos/missing.mp4")
            handle.load()

            args = await wait_for_event(handle, MediaEvent.ERROR)

            error = args[0]
            assert isinstance(error, MediaLoadError)
            assert error.status_code == 404
            assert handle.complete is False

    @pytest.mark.asyncio
    async def test_network_error_emits_media_load_error(self):
        async with make_client(connect_error_handler) as client:
            handle = HttpMediaHandle(client=client)
            handle.set_source("https://cdn.example.com/videos/a.mp4")
            handle.load()

            args = await wait_for_event(handle, MediaEvent.ERROR)

            assert isinstance(args[0], MediaLoadError)
            assert args[0].status_code is None

    @pytest.mark.asyncio
    async def test_unexpected_exception_emits_media_load_error(self):
        async with make_client(broken_transport_handler) as client:
            handle = HttpMediaHandle(client=client)
            handle.set_source("https://cdn.example.com/videos/a.mp4")
            handle.load()

            args = await wait_for_event(handle, MediaEvent.ERROR)

            assert isinstance(args[0], MediaLoadError)
            assert isinstance(args[0].original_error, RuntimeError)
            assert handle.complete is False

    @pytest.mark.asyncio
    async def test_buffer_cap_stops_download(self):
        async with make_client(ok_handler) as client:
            handle = HttpMediaHandle(client=client, chunk_size=300, max_buffer_bytes=1000)
            handle.set_source("https://cdn.example.com/videos/a.mp4")
            handle.load()

            await wait_for_event(handle, MediaEvent.CAN_PLAY_THROUGH)

            assert handle.buffered_bytes == 1000
            assert handle.capped is True
            assert handle.complete is False

    @pytest.mark.asyncio
    async def test_zero_buffer_cap_means_unlimited(self):
        async with make_client(ok_handler) as client:
            handle = HttpMediaHandle(client=client, max_buffer_bytes=0)
            handle.set_source("https://cdn.example.com/videos/a.mp4")
            handle.load()

            await wait_for_event(handle, MediaEvent.CAN_PLAY_THROUGH)

            assert handle.buffered_bytes == len(VIDEO_BYTES)
            assert handle.capped is False
            assert handle.complete is True

    @pytest.mark.asyncio
    async def test_flush_drops_buffer_and_source(self):
        async with make_client(ok_handler) as client:
            handle = HttpMediaHandle(client=client, bitrate_kbps=8)
            handle.set_source("https://cdn.example.com/videos/a.mp4")
            handle.load()
            await wait_for_event(handle, MediaEvent.CAN_PLAY_THROUGH)

            handle.flush()

            assert handle.src is None
            assert handle.buffered_bytes == 0
            assert handle.complete is False

    def test_load_without_source_is_noop(self):
        handle = HttpMediaHandle()
        handle.load()
        assert handle.buffered_bytes == 0

    def test_play_pause_toggle(self):
        handle = HttpMediaHandle()
        assert handle.paused is True
        handle.play()
        assert handle.paused is False
        handle.pause()
        assert handle.paused is True

    def test_listener_failure_does_not_stop_other_listeners(self):
        handle = HttpMediaHandle()
        calls = []

        def broken():
            raise ValueError("listener bug")

        handle.add_listener(MediaEvent.PROGRESS, broken)
        handle.add_listener(MediaEvent.PROGRESS, lambda: calls.append("ok"))

        handle.emit(MediaEvent.PROGRESS)

        assert calls == ["ok"]

    def test_once_listener_removed_after_first_emit(self):
        handle = HttpMediaHandle()
        calls = []
        handle.add_listener(MediaEvent.CAN_PLAY_THROUGH, lambda: calls.append(1), once=True)

        handle.emit(MediaEvent.CAN_PLAY_THROUGH)
        handle.emit(MediaEvent.CAN_PLAY_THROUGH)

        assert calls == [1]
        assert handle.listener_count(MediaEvent.CAN_PLAY_THROUGH) == 0


class TestPreloaderWithHttpHandle:

    @pytest.mark.asyncio
    async def test_preload_ready_after_half_second_buffered(self):
        async with make_client(ok_handler) as client:
            preloader = VideoPreloader(
                handle_factory=lambda: HttpMediaHandle(
                    client=client, bitrate_kbps=8, chunk_size=250
                ),
                timeout_sec=5.0,
            )

            resource = await preloader.preload_video("https://cdn.example.com/videos/a.mp4")

            assert resource.is_ready is True
            assert resource.buffered_seconds >= 0.5
            preloader.clear_all()

    @pytest.mark.asyncio
    async def test_preload_404_resolves_unready(self):
        async with make_client(not_found_handler) as client:
            preloader = VideoPreloader(
                handle_factory=lambda: HttpMediaHandle(client=client),
                timeout_sec=5.0,
            )

            resource = await preloader.preload_video("https://cdn.example.com/videos/x.mp4")

            assert resource.is_ready is False
            assert "https://cdn.example.com/videos/x.mp4" in preloader
            preloader.clear_all()

    @pytest.mark.asyncio
    async def test_preload_unexpected_failure_resolves_unready_before_timeout(self):
        async with make_client(broken_transport_handler) as client:
            preloader = VideoPreloader(
                handle_factory=lambda: HttpMediaHandle(client=client),
                timeout_sec=5.0,
            )

            resource = await asyncio.wait_for(
                preloader.preload_video("https://cdn.example.com/videos/x.mp4"), 1.0
            )

            assert resource.is_ready is False
            preloader.clear_all()
