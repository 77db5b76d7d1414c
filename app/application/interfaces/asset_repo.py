from __future__ import annotations
from typing import Protocol


class IImageDownloader(Protocol):
    """Bounded downloader for source images."""

    async def download(self, url: str) -> bytes:
        """Return the response body of ``url``.

        Raises a ``DownloadError`` subclass for non-2xx status, network
        failure, timeout or an oversized payload.
        """
        ...

    async def close(self) -> None:
        """Release pooled connections."""
        ...
