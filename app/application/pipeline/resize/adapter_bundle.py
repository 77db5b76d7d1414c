from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from app.application.interfaces import (
    ICacheKeyDeriver,
    IImageDownloader,
    IImageTransformer,
    IStorageBackend,
)


@dataclass(slots=True)
class ResizeAdapters:
    """Container for the collaborators of the resize pipeline.

    Built once at startup; every request shares the same storage backend,
    download limiter and worker pool.
    """

    storage: Optional[IStorageBackend] = None
    downloader: Optional[IImageDownloader] = None
    transformer: Optional[IImageTransformer] = None
    key_deriver: Optional[ICacheKeyDeriver] = None

    def validate_required(
        self, required: Iterable[str] = ("storage", "downloader", "transformer", "key_deriver")
    ) -> None:
        missing = [name for name in required if getattr(self, name, None) is None]
        if missing:
            raise ValueError(f"Missing required adapters: {', '.join(missing)}")

    async def aclose(self) -> None:
        """Close pooled HTTP connections and stop the worker pool."""
        if self.downloader is not None:
            await self.downloader.close()
        if self.transformer is not None:
            self.transformer.shutdown()
