from __future__ import annotations

from typing import Any, Protocol, Tuple

from app.core.pyd_schemas import ImageFormat


class IImageCodec(Protocol):
    """Decode/encode and pixel operations on an opaque image handle.

    Methods are synchronous and CPU-bound; callers run them in a worker pool.
    """

    def decode(self, data: bytes) -> Any:
        """Raise ``DecodeError`` for unreadable or corrupt input."""
        ...

    def dimensions(self, image: Any) -> Tuple[int, int]:
        ...

    def resize(self, image: Any, width: int, height: int, mode: str) -> Any:
        ...

    def crop(self, image: Any, x: int, y: int, width: int, height: int) -> Any:
        ...

    def grayscale(self, image: Any) -> Any:
        ...

    def blur(self, image: Any, sigma: float) -> Any:
        ...

    def encode(self, image: Any, image_format: ImageFormat) -> bytes:
        """Raise ``EncodeError`` or ``UnsupportedFormatError``."""
        ...
