from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

from app.application.interfaces.image_codec import IImageCodec
from app.application.interfaces.image_processor import IImageTransformer
from app.core.exceptions import TransformError, UnsupportedFormatError
from app.core.performance import cpu_count
from app.core.pyd_schemas import ImageFormat
from app.infrastructure.adapters.image_codec_pillow import PillowImageCodec
from utils.image_utils import apply_transform

logger = logging.getLogger(__name__)


class ImageTransformer(IImageTransformer):
    """Run decode -> resize/crop -> filters -> encode in a bounded worker pool.

    The pool is separate from the event loop, so CPU-bound work never blocks
    request handling or download bookkeeping.
    """

    def __init__(
        self,
        codec: Optional[IImageCodec] = None,
        *,
        max_workers: Optional[int] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.codec = codec or PillowImageCodec()
        self.max_workers = max(1, max_workers or cpu_count())
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="image-transform"
        )

    async def transform(
        self,
        data: bytes,
        *,
        image_format: ImageFormat,
        target_width: Optional[int] = None,
        target_height: Optional[int] = None,
        blur_sigma: Optional[float] = None,
        grayscale: Optional[bool] = None,
    ) -> Tuple[bytes, str]:
        try:
            fmt = ImageFormat(image_format)
        except ValueError as e:
            raise UnsupportedFormatError(
                f"Unsupported image format: {image_format}", image_format=str(image_format)
            ) from e

        job = functools.partial(
            self._run,
            data,
            image_format=fmt,
            target_width=target_width,
            target_height=target_height,
            blur_sigma=blur_sigma,
            grayscale=grayscale,
        )
        loop = asyncio.get_running_loop()
        encoded = await loop.run_in_executor(self._executor, job)
        return encoded, fmt.content_type

    def _run(self, data: bytes, **kwargs) -> bytes:
        try:
            return apply_transform(self.codec, data, **kwargs)
        except TransformError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.error("Unexpected transform failure: %s", e)
            raise TransformError(f"Image processing failed: {e}") from e

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
