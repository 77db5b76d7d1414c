"""
Cache key derivation.

A cache key is ``<prefix><sha256 hex>.<extension>`` where the digest covers
every parameter that changes the rendered output. The key is also the
storage object name, so the encoding below is a durable contract: any
change to it invalidates every stored artifact.
"""

import hashlib
from typing import Optional

from app.core.pyd_schemas import ImageFormat, ResizeRequest

# Marks an absent optional field; cannot collide with a rendered value
ABSENT = "\x00None"
FIELD_SEPARATOR = b"\x1f"


def _encode_optional(value) -> str:
    if value is None:
        return ABSENT
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def cache_key_fields(request: ResizeRequest) -> list[tuple[str, str]]:
    """Return the (name, encoded value) pairs hashed into the key, in order."""
    blur: Optional[float] = request.blur_sigma
    return [
        ("url", request.source_url),
        ("width", _encode_optional(request.target_width)),
        ("height", _encode_optional(request.target_height)),
        ("format", ImageFormat(request.output_format).value),
        ("blur_sigma", _encode_optional(None if blur is None else float(blur))),
        ("grayscale", _encode_optional(request.grayscale)),
    ]


def derive_cache_key(request: ResizeRequest, prefix: str = "") -> str:
    """
    Derive the deterministic cache key for a resize request.

    Args:
        request: Validated resize parameters
        prefix: Optional sub-path prepended to the key

    Returns:
        str: ``<prefix><64 hex chars>.<format extension>``

    Examples:
        >>> key = derive_cache_key(ResizeRequest(source_url="https://a/b.png", target_width=300))
        >>> len(key), key.endswith(".jpg")
        (68, True)
    """
    hasher = hashlib.sha256()
    for name, encoded in cache_key_fields(request):
        hasher.update(name.encode("utf-8"))
        hasher.update(b"=")
        hasher.update(encoded.encode("utf-8"))
        hasher.update(FIELD_SEPARATOR)
    extension = ImageFormat(request.output_format).extension
    return f"{prefix}{hasher.hexdigest()}.{extension}"


class CacheKeyDeriver:
    """Callable wrapper that carries the configured key prefix."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def derive(self, request: ResizeRequest) -> str:
        return derive_cache_key(request, self.prefix)

    __call__ = derive
