from __future__ import annotations

from typing import Protocol, runtime_checkable

from app.core.pyd_schemas import ResizeRequest

from .asset_repo import IImageDownloader
from .image_processor import IImageTransformer
from .storage_repo import IStorageBackend


class ICacheKeyDeriver(Protocol):
    def derive(self, request: ResizeRequest) -> str:
        """Return the deterministic cache key for ``request``."""
        ...


@runtime_checkable
class IResizeAdapters(Protocol):
    storage: IStorageBackend
    downloader: IImageDownloader
    transformer: IImageTransformer
    key_deriver: ICacheKeyDeriver
