from __future__ import annotations

from typing import Optional, Protocol, Tuple

from app.core.pyd_schemas import ImageFormat


class IImageTransformer(Protocol):
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
        """Return (encoded bytes, content type).

        Implementations run the CPU-bound work off the event loop.
        """
        ...

    def shutdown(self) -> None:
        ...
