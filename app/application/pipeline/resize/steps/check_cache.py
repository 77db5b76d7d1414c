from __future__ import annotations

import logging

from app.application.interfaces import IStorageBackend
from app.application.pipeline.base import BaseStep, PipelineContext
from app.application.pipeline.resize import context_keys as keys
from app.core.exceptions import CacheCheckError

logger = logging.getLogger(__name__)


class CheckCacheStep(BaseStep):
    """Short-circuit the pipeline when the artifact is already stored.

    A failing existence check is treated as a miss: the request falls
    through to a fresh download and transform.
    """

    name = "check_cache"
    required_keys = [keys.CACHE_KEY]

    def __init__(self, storage: IStorageBackend):
        self.storage = storage

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        cache_key = context.get(keys.CACHE_KEY)
        try:
            hit = await self.storage.exists(cache_key)
        except CacheCheckError as e:
            logger.warning(
                "Cache check failed for %s, treating as miss: %s", cache_key, e
            )
            hit = False

        context.set(keys.CACHE_HIT, hit)
        if hit:
            context.set(keys.PUBLIC_URL, self.storage.public_url(cache_key))
            logger.info("Cache hit: %s", cache_key)
        else:
            logger.info("Cache miss: %s", cache_key)
