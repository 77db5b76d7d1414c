from __future__ import annotations

import logging

from app.application.interfaces import ICacheKeyDeriver
from app.application.pipeline.base import BaseStep, PipelineContext
from app.application.pipeline.resize import context_keys as keys

logger = logging.getLogger(__name__)


class DeriveKeyStep(BaseStep):
    name = "derive_key"

    def __init__(self, key_deriver: ICacheKeyDeriver):
        self.key_deriver = key_deriver

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        request = context.input[keys.REQUEST]
        cache_key = self.key_deriver.derive(request)
        context.set(keys.CACHE_KEY, cache_key)
        logger.debug("Derived cache key %s for %s", cache_key, request.source_url)
