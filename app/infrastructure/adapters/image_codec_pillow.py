from __future__ import annotations

import io
import logging
from typing import Tuple

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from app.application.interfaces.image_codec import IImageCodec
from app.core.exceptions import DecodeError, EncodeError, UnsupportedFormatError
from app.core.pyd_schemas import ImageFormat

logger = logging.getLogger(__name__)

# format -> (Pillow encoder, save options)
ENCODERS = {
    ImageFormat.jpg: ("JPEG", {"quality": 85, "optimize": True}),
    ImageFormat.png: ("PNG", {"optimize": True}),
    ImageFormat.webp: ("WEBP", {"quality": 80, "method": 4}),
}

WORKING_MODES = ("RGB", "RGBA", "L", "LA")

# 16-bit integer samples; Pillow opens 16-bit PNGs as one of these
SIXTEEN_BIT_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def _to_8bit_gray(image: Image.Image) -> Image.Image:
    """Rescale a high-bit-depth single-band image to ``L``.

    A plain ``convert("L")`` clamps instead of scaling, so anything above
    255 would come out white.
    """
    if image.mode == "F":
        _, high = image.getextrema()
        scale = 255.0 if high <= 1.0 else 1.0 if high <= 255.0 else 255.0 / high
    else:
        if image.mode != "I":
            image = image.convert("I")
        scale = 1 / 256
    return image.point(lambda v: v * scale).convert("L")


class PillowImageCodec(IImageCodec):
    """Image codec backed by Pillow."""

    def decode(self, data: bytes) -> Image.Image:
        if not data:
            raise DecodeError("Failed to decode image: empty payload")
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            image = ImageOps.exif_transpose(image)
        except (UnidentifiedImageError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Failed to decode image: {e}") from e
        except (OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Corrupt or truncated image: {e}") from e

        if image.mode in SIXTEEN_BIT_MODES or image.mode == "F":
            image = _to_8bit_gray(image)
        elif image.mode not in WORKING_MODES:
            has_alpha = image.mode in ("P", "PA") and "transparency" in image.info
            image = image.convert("RGBA" if has_alpha or "A" in image.getbands() else "RGB")
        logger.debug("Image decoded. Original dimensions: %dx%d", *image.size)
        return image

    def dimensions(self, image: Image.Image) -> Tuple[int, int]:
        return image.size

    def resize(self, image: Image.Image, width: int, height: int, mode: str) -> Image.Image:
        if image.size == (width, height):
            return image
        return image.resize((width, height), Image.Resampling.LANCZOS)

    def crop(self, image: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
        return image.crop((x, y, x + width, y + height))

    def grayscale(self, image: Image.Image) -> Image.Image:
        return image.convert("LA" if "A" in image.getbands() else "L")

    def blur(self, image: Image.Image, sigma: float) -> Image.Image:
        return image.filter(ImageFilter.GaussianBlur(radius=sigma))

    def encode(self, image: Image.Image, image_format: ImageFormat) -> bytes:
        try:
            encoder, options = ENCODERS[ImageFormat(image_format)]
        except (KeyError, ValueError) as e:
            raise UnsupportedFormatError(
                f"Unsupported image format: {image_format}", image_format=str(image_format)
            ) from e

        if encoder == "JPEG":
            image = _flatten_for_jpeg(image)

        buffer = io.BytesIO()
        try:
            image.save(buffer, format=encoder, **options)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Failed to encode image to {encoder}: {e}") from e
        return buffer.getvalue()


def _flatten_for_jpeg(image: Image.Image) -> Image.Image:
    """JPEG has no alpha channel: composite onto white."""
    if image.mode in ("RGB", "L"):
        return image
    if image.mode == "LA":
        background = Image.new("L", image.size, 255)
        background.paste(image.getchannel("L"), mask=image.getchannel("A"))
        return background
    rgba = image.convert("RGBA")
    background = Image.new("RGB", image.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background
