from __future__ import annotations

from abc import ABC, abstractmethod

from app.application.interfaces.storage_repo import IStorageBackend
from app.core.pyd_schemas import StoredArtifact


class StorageBackendBase(IStorageBackend, ABC):
    """Shared public URL formatting for the concrete storage backends."""

    name: str = "base"

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    @abstractmethod
    async def exists(self, key: str) -> bool: ...

    @abstractmethod
    async def upload(self, key: str, content_type: str, data: bytes) -> None: ...

    @abstractmethod
    async def fetch(self, key: str) -> StoredArtifact: ...
