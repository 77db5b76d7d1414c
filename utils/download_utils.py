"""
Download utility functions.
"""

import logging
from typing import Optional

from app.core.exceptions import PayloadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def check_declared_length(
    content_length: Optional[int], max_size: int, url: str
) -> None:
    """
    Reject a response whose declared Content-Length exceeds ``max_size``.

    Args:
        content_length: Declared length, or None when the header is absent
        max_size: Ceiling in bytes
        url: Source URL (for the error)

    Raises:
        PayloadTooLargeError: If the declared size is over the ceiling
    """
    if content_length is not None and content_length > max_size:
        raise PayloadTooLargeError(
            f"Image at {url} declares {content_length} bytes, limit is {max_size}",
            url=url,
            limit=max_size,
            declared=content_length,
        )


async def read_limited_body(response, max_size: int, url: str) -> bytes:
    """
    Read a response body in chunks, aborting once it grows past ``max_size``.

    Covers responses without (or with a wrong) Content-Length header.
    """
    buffer = bytearray()
    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
        buffer.extend(chunk)
        if len(buffer) > max_size:
            logger.warning("Body of %s exceeded %d bytes; aborting", url, max_size)
            raise PayloadTooLargeError(
                f"Image at {url} exceeds the {max_size} byte limit",
                url=url,
                limit=max_size,
            )
    return bytes(buffer)
