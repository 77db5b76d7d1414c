from __future__ import annotations

import logging

from app.application.pipeline.resize.adapter_bundle import ResizeAdapters
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import ConfigurationError
from app.core.performance import PerformanceConfig
from app.core.storage_config import (
    InMemoryConfig,
    LocalFsConfig,
    ObjectStoreConfig,
    StorageBackendConfig,
)
from app.infrastructure.adapters import (
    FetchLimiter,
    ImageTransformer,
    InMemoryStorageBackend,
    LocalFSStorageBackend,
    S3StorageBackend,
    StorageBackendBase,
)
from utils.cache_key_utils import CacheKeyDeriver

logger = logging.getLogger(__name__)


def create_storage_backend(config: StorageBackendConfig, base_url: str) -> StorageBackendBase:
    """Build the concrete storage backend for a configuration variant."""
    if isinstance(config, ObjectStoreConfig):
        return S3StorageBackend(config, base_url=base_url)
    if isinstance(config, LocalFsConfig):
        return LocalFSStorageBackend(config.base_path, base_url=base_url)
    if isinstance(config, InMemoryConfig):
        logger.warning("Using in-memory storage: cached images are lost on restart")
        return InMemoryStorageBackend(base_url=base_url)
    raise ConfigurationError(f"Unsupported storage configuration: {config!r}")


def get_resize_adapter_bundle(app_settings: Settings | None = None) -> ResizeAdapters:
    """Provide the adapters container for the resize pipeline.

    Called once per process: the storage backend, the download limiter and
    the transform worker pool are shared by every request.
    """
    cfg = app_settings or default_settings
    perf = PerformanceConfig.from_settings(cfg)
    storage_config = cfg.storage_backend_config()

    adapters = ResizeAdapters(
        storage=create_storage_backend(storage_config, cfg.cdn_base_url),
        downloader=FetchLimiter(
            max_concurrent=perf.max_concurrent_downloads,
            timeout=perf.http_timeout,
            max_size=perf.max_image_size,
        ),
        transformer=ImageTransformer(max_workers=perf.worker_pool_size()),
        key_deriver=CacheKeyDeriver(cfg.storage_key_prefix),
    )
    logger.info(
        "Resize adapters ready: storage=%s downloads=%d timeout=%.1fs max_size=%d workers=%d",
        adapters.storage.name,
        perf.max_concurrent_downloads,
        perf.http_timeout,
        perf.max_image_size,
        perf.worker_pool_size(),
    )
    return adapters
