from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    NonNegativeFloat,
    PositiveInt,
    field_validator,
)


class ImageFormat(str, Enum):
    """Output formats; the value doubles as the cache key extension."""

    jpg = "jpg"
    png = "png"
    webp = "webp"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized == "jpeg":
                normalized = "jpg"
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def extension(self) -> str:
        return self.value

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self]


CONTENT_TYPES = {
    ImageFormat.jpg: "image/jpeg",
    ImageFormat.png: "image/png",
    ImageFormat.webp: "image/webp",
}


def _coerce_format(value):
    if isinstance(value, ImageFormat) or value is None:
        return value
    return ImageFormat(value)


class ResizeRequest(BaseModel):
    """Validated, immutable parameters of one resize call."""

    model_config = ConfigDict(frozen=True)

    source_url: str = Field(min_length=1)
    target_width: Optional[PositiveInt] = None
    target_height: Optional[PositiveInt] = None
    output_format: ImageFormat = ImageFormat.jpg
    blur_sigma: Optional[NonNegativeFloat] = None
    grayscale: Optional[bool] = None

    @field_validator("output_format", mode="before")
    @classmethod
    def parse_format(cls, v):
        return _coerce_format(v)


class ResizeQueryParams(BaseModel):
    """Query string of GET /images/resize, range-checked."""

    url: HttpUrl
    width: Optional[int] = Field(default=None, ge=10, le=4096)
    height: Optional[int] = Field(default=None, ge=10, le=4096)
    format: ImageFormat = ImageFormat.jpg
    blur_sigma: Optional[float] = Field(default=None, ge=0, le=100)
    grayscale: Optional[bool] = None

    @field_validator("format", mode="before")
    @classmethod
    def parse_format(cls, v):
        return _coerce_format(v)

    def to_request(self) -> ResizeRequest:
        return ResizeRequest(
            source_url=str(self.url),
            target_width=self.width,
            target_height=self.height,
            output_format=self.format,
            blur_sigma=self.blur_sigma,
            grayscale=self.grayscale,
        )


@dataclass(frozen=True, slots=True)
class StoredArtifact:
    """Encoded image bytes as held by a storage backend."""

    data: bytes
    content_type: str
