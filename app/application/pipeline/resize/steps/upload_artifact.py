from __future__ import annotations

import logging

from app.application.interfaces import IStorageBackend
from app.application.pipeline.base import BaseStep, PipelineContext
from app.application.pipeline.resize import context_keys as keys
from app.core.exceptions import StorageError, StorageUploadError

logger = logging.getLogger(__name__)


class UploadArtifactStep(BaseStep):
    name = "upload_artifact"
    required_keys = [keys.CACHE_KEY, keys.IMAGE_BYTES, keys.CONTENT_TYPE]

    def __init__(self, storage: IStorageBackend):
        self.storage = storage

    def can_skip(self, context: PipelineContext) -> bool:
        return bool(context.get(keys.CACHE_HIT))

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        cache_key = context.get(keys.CACHE_KEY)
        try:
            await self.storage.upload(
                cache_key,
                context.get(keys.CONTENT_TYPE),
                context.get(keys.IMAGE_BYTES),
            )
        except StorageError:
            raise
        except Exception as e:  # noqa: BLE001
            raise StorageUploadError(
                f"Failed to upload {cache_key}: {e}", key=cache_key
            ) from e

        url = self.storage.public_url(cache_key)
        context.set(keys.PUBLIC_URL, url)
        logger.info("Uploaded %s -> %s", cache_key, url)
