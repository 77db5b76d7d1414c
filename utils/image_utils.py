"""
Image resizing utilities.

This module holds the codec-independent part of the transform: resize
geometry for the supported modes and the ordered application of resize,
crop, grayscale and blur through an image codec.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from app.application.interfaces.image_codec import IImageCodec
from app.core.pyd_schemas import ImageFormat

logger = logging.getLogger(__name__)

Size = Tuple[int, int]
Box = Tuple[int, int, int, int]


@dataclass(frozen=True)
class ResizePlan:
    """Resize target and optional crop box (x, y, width, height).

    ``resize_to`` is None when the source passes through unchanged.
    """

    resize_to: Optional[Size] = None
    crop_box: Optional[Box] = None
    mode: str = "passthrough"


def _scaled(value: int, factor: float) -> int:
    return max(1, int(round(value * factor)))


def scale_to_width(src_w: int, src_h: int, target_w: int) -> Size:
    """
    Scale to a target width, preserving aspect ratio.

    Examples:
        >>> scale_to_width(1000, 500, 800)
        (800, 400)
    """
    return target_w, _scaled(src_h, target_w / src_w)


def scale_to_height(src_w: int, src_h: int, target_h: int) -> Size:
    return _scaled(src_w, target_h / src_h), target_h


def cover_geometry(src_w: int, src_h: int, target_w: int, target_h: int) -> Tuple[Size, Box]:
    """
    Compute the scale-to-fill size and the centered crop for a target box.

    The crop origin is floor((scaled - target) / 2) clamped at zero and the
    crop extent never exceeds the scaled size, so rounding can not push the
    box out of bounds.

    Args:
        src_w: Source width
        src_h: Source height
        target_w: Requested width
        target_h: Requested height

    Returns:
        ((scaled_w, scaled_h), (x, y, crop_w, crop_h))

    Examples:
        >>> cover_geometry(1000, 500, 300, 300)
        ((600, 300), (150, 0, 300, 300))
    """
    factor = max(target_w / src_w, target_h / src_h)
    scaled_w = _scaled(src_w, factor)
    scaled_h = _scaled(src_h, factor)

    x = max(0, (scaled_w - target_w) // 2)
    y = max(0, (scaled_h - target_h) // 2)
    crop_w = min(target_w, scaled_w)
    crop_h = min(target_h, scaled_h)
    return (scaled_w, scaled_h), (x, y, crop_w, crop_h)


def plan_resize(
    src_w: int,
    src_h: int,
    target_width: Optional[int] = None,
    target_height: Optional[int] = None,
) -> ResizePlan:
    """Pick the resize mode from the requested dimensions."""
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid source size: {src_w}x{src_h}")

    if target_width and target_height:
        scaled, box = cover_geometry(src_w, src_h, target_width, target_height)
        return ResizePlan(resize_to=scaled, crop_box=box, mode="cover")
    if target_width:
        return ResizePlan(
            resize_to=scale_to_width(src_w, src_h, target_width), mode="width"
        )
    if target_height:
        return ResizePlan(
            resize_to=scale_to_height(src_w, src_h, target_height), mode="height"
        )
    return ResizePlan()


def apply_transform(
    codec: IImageCodec,
    data: bytes,
    *,
    image_format: ImageFormat,
    target_width: Optional[int] = None,
    target_height: Optional[int] = None,
    blur_sigma: Optional[float] = None,
    grayscale: Optional[bool] = None,
) -> bytes:
    """
    Decode, resize/crop, filter and encode an image.

    Order: resize (and crop for cover), then grayscale, then blur. A blur
    sigma of zero is a no-op.

    Returns:
        bytes: Encoded image in ``image_format``
    """
    image: Any = codec.decode(data)
    src_w, src_h = codec.dimensions(image)
    plan = plan_resize(src_w, src_h, target_width, target_height)

    if plan.resize_to is not None:
        image = codec.resize(image, plan.resize_to[0], plan.resize_to[1], plan.mode)
    if plan.crop_box is not None:
        x, y, w, h = plan.crop_box
        image = codec.crop(image, x, y, w, h)

    logger.debug(
        "Resize %s: %dx%d -> %s", plan.mode, src_w, src_h, codec.dimensions(image)
    )

    if grayscale:
        image = codec.grayscale(image)
    if blur_sigma is not None and blur_sigma > 0:
        image = codec.blur(image, float(blur_sigma))

    return codec.encode(image, image_format)
