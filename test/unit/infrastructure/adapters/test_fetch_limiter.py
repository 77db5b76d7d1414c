import asyncio

import aiohttp
import pytest

from app.core.exceptions import (
    DownloadErrorKind,
    DownloadNetworkError,
    DownloadStatusError,
    DownloadTimeoutError,
    PayloadTooLargeError,
)
from app.infrastructure.adapters.fetch_limiter import FetchLimiter


class DummySession:
    """Minimal aiohttp.ClientSession stand-in: ``get`` returns ``handler(url)``."""

    def __init__(self, handler):
        self._handler = handler
        self.closed = False
        self.urls = []

    def get(self, url):
        self.urls.append(url)
        return self._handler(url)

    async def close(self):
        self.closed = True


class _RaisingContext:
    def __init__(self, exc):
        self._exc = exc

    async def __aenter__(self):
        raise self._exc

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_download_returns_body(fake_http_response):
    session = DummySession(lambda url: fake_http_response(body=b"image-bytes").response)
    limiter = FetchLimiter(session_factory=lambda: session)

    assert await limiter.download("http://img/cat.png") == b"image-bytes"
    assert session.urls == ["http://img/cat.png"]

    await limiter.close()
    assert session.closed is True


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_non_2xx_status_raises_status_error(fake_http_response):
    session = DummySession(lambda url: fake_http_response(status=404, body=b"nope").response)
    limiter = FetchLimiter(session_factory=lambda: session)

    with pytest.raises(DownloadStatusError) as exc_info:
        await limiter.download("http://img/missing.png")

    assert exc_info.value.status == 404
    assert exc_info.value.kind == DownloadErrorKind.status
    assert limiter.in_flight == 0


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_declared_oversize_is_rejected_without_reading_body(fake_http_response):
    fake = fake_http_response(body=b"x" * 64, content_length=10_000)
    limiter = FetchLimiter(max_size=1_000, session_factory=lambda: DummySession(lambda url: fake.response))

    with pytest.raises(PayloadTooLargeError) as exc_info:
        await limiter.download("http://img/huge.png")

    assert exc_info.value.declared == 10_000
    assert fake.read["bytes"] == 0


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_undeclared_oversize_is_rejected_while_streaming(fake_http_response):
    fake = fake_http_response(body=b"x" * 64, content_length=None, chunk=8)
    limiter = FetchLimiter(max_size=20, session_factory=lambda: DummySession(lambda url: fake.response))

    with pytest.raises(PayloadTooLargeError):
        await limiter.download("http://img/chunked.png")
    assert fake.read["bytes"] == 24


@pytest.mark.adapters
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc,expected",
    [
        (aiohttp.ClientConnectionError("refused"), DownloadNetworkError),
        (asyncio.TimeoutError(), DownloadTimeoutError),
    ],
)
async def test_transport_errors_are_classified(exc, expected):
    limiter = FetchLimiter(session_factory=lambda: DummySession(lambda url: _RaisingContext(exc)))

    with pytest.raises(expected) as exc_info:
        await limiter.download("http://img/cat.png")
    assert exc_info.value.url == "http://img/cat.png"
    assert limiter.in_flight == 0


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_concurrency_ceiling_holds_under_burst():
    limit = 3
    active = 0
    peak = 0
    release = asyncio.Event()

    class SlowResponse:
        status = 200
        content_length = None

        def __init__(self):
            self.content = self

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def iter_chunked(self, n):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            try:
                await release.wait()
                yield b"ok"
            finally:
                active -= 1

    limiter = FetchLimiter(
        max_concurrent=limit,
        session_factory=lambda: DummySession(lambda url: SlowResponse()),
    )

    tasks = [asyncio.create_task(limiter.download(f"http://img/{i}.png")) for i in range(10)]
    for _ in range(20):
        await asyncio.sleep(0)
    assert limiter.in_flight == limit
    assert active == limit

    release.set()
    results = await asyncio.gather(*tasks)

    assert results == [b"ok"] * 10
    assert peak == limit
    assert limiter.in_flight == 0


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_slots_are_released_after_errors(fake_http_response):
    statuses = iter([500, 500, 200])
    session = DummySession(
        lambda url: fake_http_response(status=next(statuses), body=b"ok").response
    )
    limiter = FetchLimiter(max_concurrent=1, session_factory=lambda: session)

    for _ in range(2):
        with pytest.raises(DownloadStatusError):
            await limiter.download("http://img/flaky.png")
    assert await asyncio.wait_for(limiter.download("http://img/flaky.png"), timeout=1) == b"ok"


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_cancelled_download_releases_its_slot(fake_http_response):
    reading = asyncio.Event()
    never = asyncio.Event()

    class BlockingResponse:
        status = 200
        content_length = None

        def __init__(self):
            self.content = self

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def iter_chunked(self, n):
            reading.set()
            await never.wait()
            yield b"unreachable"

    def handler(url):
        if url.endswith("stuck.png"):
            return BlockingResponse()
        return fake_http_response(body=b"ok").response

    limiter = FetchLimiter(max_concurrent=1, session_factory=lambda: DummySession(handler))

    stuck = asyncio.create_task(limiter.download("http://img/stuck.png"))
    await asyncio.wait_for(reading.wait(), timeout=1)
    assert limiter.in_flight == 1

    stuck.cancel()
    with pytest.raises(asyncio.CancelledError):
        await stuck

    assert limiter.in_flight == 0
    assert await asyncio.wait_for(limiter.download("http://img/next.png"), timeout=1) == b"ok"


def test_rejects_non_positive_concurrency():
    with pytest.raises(ValueError):
        FetchLimiter(max_concurrent=0)
