from __future__ import annotations

import logging

from app.application.interfaces import IImageTransformer
from app.application.pipeline.base import BaseStep, PipelineContext
from app.application.pipeline.resize import context_keys as keys

logger = logging.getLogger(__name__)


class TransformImageStep(BaseStep):
    name = "transform_image"
    required_keys = [keys.SOURCE_BYTES]

    def __init__(self, transformer: IImageTransformer):
        self.transformer = transformer

    def can_skip(self, context: PipelineContext) -> bool:
        return bool(context.get(keys.CACHE_HIT))

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        request = context.input[keys.REQUEST]
        data, content_type = await self.transformer.transform(
            context.get(keys.SOURCE_BYTES),
            image_format=request.output_format,
            target_width=request.target_width,
            target_height=request.target_height,
            blur_sigma=request.blur_sigma,
            grayscale=request.grayscale,
        )
        context.update(**{keys.IMAGE_BYTES: data, keys.CONTENT_TYPE: content_type})
        # source bytes are no longer needed
        context.remove(keys.SOURCE_BYTES)
        logger.info("Transformed image into %d bytes (%s)", len(data), content_type)
