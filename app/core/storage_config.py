"""
Storage backend configuration variants.

Exactly one of these is built from settings at startup and stays fixed for
the lifetime of the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class ObjectStoreConfig:
    """S3-compatible object store (AWS S3, MinIO)."""

    endpoint_url: str
    access_key_id: str
    secret_access_key: str
    bucket: str
    region: str

    def __repr__(self) -> str:
        return (
            f"ObjectStoreConfig(endpoint_url={self.endpoint_url!r}, "
            f"bucket={self.bucket!r}, region={self.region!r})"
        )


@dataclass(frozen=True, slots=True)
class LocalFsConfig:
    base_path: str


@dataclass(frozen=True, slots=True)
class InMemoryConfig:
    pass


StorageBackendConfig = Union[ObjectStoreConfig, LocalFsConfig, InMemoryConfig]
