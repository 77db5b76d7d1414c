from __future__ import annotations

from app.application.interfaces import IResizeAdapters
from app.application.pipeline.base import Pipeline, make_logging_middleware
from app.application.pipeline.factory import PipelineFactory
from app.application.pipeline.resize.steps.derive_key import DeriveKeyStep
from app.application.pipeline.resize.steps.check_cache import CheckCacheStep
from app.application.pipeline.resize.steps.download_source import DownloadSourceStep
from app.application.pipeline.resize.steps.transform_image import TransformImageStep
from app.application.pipeline.resize.steps.upload_artifact import UploadArtifactStep


def build_resize_pipeline(
    adapters: IResizeAdapters,
    *,
    enable_logging_middleware: bool = True,
) -> Pipeline:
    """Build the per-request pipeline:
    derive key -> check cache -> download -> transform -> upload.

    Steps keep per-run status, so build a fresh pipeline for every request.
    """
    middlewares = [make_logging_middleware()] if enable_logging_middleware else []
    factory = PipelineFactory(middlewares=middlewares)
    factory.add(DeriveKeyStep(adapters.key_deriver))
    factory.add(CheckCacheStep(adapters.storage))
    factory.add(DownloadSourceStep(adapters.downloader))
    factory.add(TransformImageStep(adapters.transformer))
    factory.add(UploadArtifactStep(adapters.storage))

    return factory.build()
