from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import aiohttp

from app.application.interfaces.asset_repo import IImageDownloader
from app.core.exceptions import (
    DownloadError,
    DownloadNetworkError,
    DownloadStatusError,
    DownloadTimeoutError,
)
from utils.download_utils import check_declared_length, read_limited_body

logger = logging.getLogger(__name__)


class FetchLimiter(IImageDownloader):
    """Download source images with bounded concurrency and size.

    At most ``max_concurrent`` downloads run at once; further callers wait
    for a free slot. Each download has its own ``timeout`` (seconds) that
    starts once the slot is acquired. Bodies larger than ``max_size`` bytes
    are rejected, before reading when Content-Length declares it.
    """

    def __init__(
        self,
        *,
        max_concurrent: int = 20,
        timeout: float = 30.0,
        max_size: int = 50 * 1024 * 1024,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.timeout = timeout
        self.max_size = max_size
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._session_factory = session_factory or self._default_session
        self._session: Optional[aiohttp.ClientSession] = None
        self._in_flight = 0

    def _default_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = self._session_factory()
        return self._session

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def download(self, url: str) -> bytes:
        async with self._semaphore:
            self._in_flight += 1
            try:
                return await self._fetch(url)
            finally:
                self._in_flight -= 1

    async def _fetch(self, url: str) -> bytes:
        session = self._get_session()
        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise DownloadStatusError(
                        f"Failed to download image from {url}: status {response.status}",
                        url=url,
                        status=response.status,
                    )
                check_declared_length(response.content_length, self.max_size, url)
                return await read_limited_body(response, self.max_size, url)
        except DownloadError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning("Timed out downloading %s after %ss", url, self.timeout)
            raise DownloadTimeoutError(
                f"Timed out downloading {url} after {self.timeout}s", url=url
            ) from e
        except aiohttp.ClientError as e:
            logger.warning("Failed to download %s: %s", url, e)
            raise DownloadNetworkError(f"Failed to download {url}: {e}", url=url) from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
