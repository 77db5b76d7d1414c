import logging

from app.application.interfaces import IResizeAdapters
from app.application.pipeline.base import PipelineContext
from app.application.pipeline.resize import context_keys as keys
from app.application.pipeline.resize.builder import build_resize_pipeline
from app.core.exceptions import CacheCheckError, NotFoundError
from app.core.pyd_schemas import ResizeRequest, StoredArtifact

logger = logging.getLogger(__name__)


class ResizeImageUseCase:
    """Entry point of the resize service used by the HTTP layer.

    ``resize`` runs the cache-or-compute pipeline and returns the public URL
    of the artifact; ``retrieve`` serves previously cached bytes.
    Concurrent identical requests are not deduplicated: each one downloads,
    transforms and uploads the same deterministic artifact.
    """

    def __init__(self, adapters: IResizeAdapters) -> None:
        self._adapters = adapters

    @property
    def adapters(self) -> IResizeAdapters:
        return self._adapters

    async def resize(self, request: ResizeRequest) -> str:
        ctx = PipelineContext(input={keys.REQUEST: request})

        pipeline = build_resize_pipeline(self._adapters)
        run = await pipeline.execute(ctx)

        logger.info(
            "Resize %s finished in %.3fs (cache_hit=%s)",
            ctx.get(keys.CACHE_KEY),
            run.duration,
            ctx.get(keys.CACHE_HIT),
        )
        return ctx.get(keys.PUBLIC_URL)

    async def retrieve(self, key: str) -> StoredArtifact:
        storage = self._adapters.storage
        try:
            found = await storage.exists(key)
        except CacheCheckError as e:
            # fetch below reports a genuine miss as NotFoundError
            logger.warning("Existence check failed for %s: %s", key, e)
            found = True

        if not found:
            raise NotFoundError(f"Image not found: {key}", key=key)
        return await storage.fetch(key)
