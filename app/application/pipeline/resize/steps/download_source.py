from __future__ import annotations

import logging

from app.application.interfaces import IImageDownloader
from app.application.pipeline.base import BaseStep, PipelineContext
from app.application.pipeline.resize import context_keys as keys

logger = logging.getLogger(__name__)


class DownloadSourceStep(BaseStep):
    name = "download_source"
    required_keys = [keys.CACHE_KEY]

    def __init__(self, downloader: IImageDownloader):
        self.downloader = downloader

    def can_skip(self, context: PipelineContext) -> bool:
        return bool(context.get(keys.CACHE_HIT))

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        url = context.input[keys.REQUEST].source_url
        data = await self.downloader.download(url)
        context.set(keys.SOURCE_BYTES, data)
        logger.info("Downloaded %d bytes from %s", len(data), url)
