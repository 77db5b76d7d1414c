import pytest

from app.core.config import Settings
from app.core.exceptions import ConfigurationError
from app.core.storage_config import ObjectStoreConfig
from app.infrastructure.adapters import (
    FetchLimiter,
    ImageTransformer,
    InMemoryStorageBackend,
    LocalFSStorageBackend,
    S3StorageBackend,
)
from app.infrastructure.adapters.bundles.resize import (
    create_storage_backend,
    get_resize_adapter_bundle,
)


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_bundle_wires_settings_into_adapters(tmp_path):
    adapters = get_resize_adapter_bundle(
        _settings(
            storage_type="local_fs",
            local_fs_storage_path=str(tmp_path),
            cdn_base_url="http://cdn.local/img/",
            storage_key_prefix="v1/",
            performance_profile="low_latency",
            cpu_thread_pool_size=2,
        )
    )
    try:
        adapters.validate_required()
        assert isinstance(adapters.storage, LocalFSStorageBackend)
        assert adapters.storage.public_url("a.jpg") == "http://cdn.local/img/a.jpg"
        assert isinstance(adapters.downloader, FetchLimiter)
        assert adapters.downloader.max_concurrent == 10
        assert adapters.downloader.timeout == 10.0
        assert isinstance(adapters.transformer, ImageTransformer)
        assert adapters.transformer.max_workers == 2
        assert adapters.key_deriver.prefix == "v1/"
    finally:
        await adapters.aclose()


@pytest.mark.adapters
def test_storage_backend_per_config_variant(tmp_path):
    assert isinstance(
        create_storage_backend(_settings(storage_type="IN_MEMORY").storage_backend_config(), ""),
        InMemoryStorageBackend,
    )
    s3 = create_storage_backend(
        ObjectStoreConfig("http://minio:9000", "k", "s", "bucket", "us-east-1"),
        "http://minio:9000/bucket",
    )
    assert isinstance(s3, S3StorageBackend)
    assert s3.bucket == "bucket"


@pytest.mark.adapters
def test_unknown_config_variant_raises():
    with pytest.raises(ConfigurationError):
        create_storage_backend(object(), "")  # type: ignore[arg-type]
