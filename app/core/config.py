"""
Application configuration using Pydantic Settings
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from app.core.exceptions import ConfigurationError
from app.core.storage_config import (
    InMemoryConfig,
    LocalFsConfig,
    ObjectStoreConfig,
    StorageBackendConfig,
)

STORAGE_TYPE_ALIASES = {
    "S3": "S3",
    "MINIO": "S3",
    "LOCAL_FS": "LOCAL_FS",
    "IN_MEMORY": "IN_MEMORY",
}


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API Settings
    api_title: str = "Image Resizer API"
    api_description: str = "On-demand image resizing with content-addressed caching"
    api_version: str = "0.1.2"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Logging Settings
    log_level: str = "INFO"
    log_format: str = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    log_file: str = ""

    # Storage Settings
    storage_type: str = "LOCAL_FS"
    """
    Storage backend, selected once at startup.
    S3 (alias MINIO): S3-compatible object store configured by s3_*
    LOCAL_FS: files under local_fs_storage_path
    IN_MEMORY: process-lifetime map, development and tests only
    """
    s3_endpoint_url: str = "http://localhost:9000"
    s3_access_key_id: str = "minioadmin"
    s3_secret_access_key: str = "minioadmin"
    s3_bucket: str = "image-cache"
    s3_region: str = "us-east-1"
    local_fs_storage_path: str = "./data/images"
    cdn_base_url: str = "http://localhost:9000/image-cache"
    storage_key_prefix: str = ""

    # Request Validation Settings
    max_image_width: int = 4096
    max_image_height: int = 4096

    # Performance Settings (None means "use the profile value")
    performance_profile: Optional[str] = None
    max_concurrent_downloads: Optional[int] = None
    http_timeout_secs: Optional[float] = None
    max_image_size_mb: Optional[int] = None
    cpu_thread_pool_size: Optional[int] = None

    # Response Settings
    files_cache_control: str = "public, max-age=31536000, immutable"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("storage_type")
    @classmethod
    def normalize_storage_type(cls, v: str) -> str:
        """Upper-case the storage type and resolve aliases.

        Example:
            >>> Settings(storage_type="minio").storage_type
            'S3'
        """
        key = str(v).strip().upper().replace("-", "_")
        return STORAGE_TYPE_ALIASES.get(key, key)

    def storage_backend_config(self) -> StorageBackendConfig:
        """Return the backend configuration variant for ``storage_type``."""
        if self.storage_type == "S3":
            return ObjectStoreConfig(
                endpoint_url=self.s3_endpoint_url,
                access_key_id=self.s3_access_key_id,
                secret_access_key=self.s3_secret_access_key,
                bucket=self.s3_bucket,
                region=self.s3_region,
            )
        if self.storage_type == "LOCAL_FS":
            return LocalFsConfig(base_path=self.local_fs_storage_path)
        if self.storage_type == "IN_MEMORY":
            return InMemoryConfig()
        raise ConfigurationError(
            f"Unknown storage type: {self.storage_type}", config_key="storage_type"
        )


# Global settings instance
settings = Settings()
