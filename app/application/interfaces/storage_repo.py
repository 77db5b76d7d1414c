from __future__ import annotations
from typing import Protocol

from app.core.pyd_schemas import StoredArtifact


class IStorageBackend(Protocol):
    """Storage for encoded images, addressed by cache key.

    Implementations may back onto an S3-compatible object store, the local
    filesystem or process memory. A backend is selected once at startup.
    """

    name: str

    async def exists(self, key: str) -> bool:
        """Return whether ``key`` is stored.

        A missing key is ``False``, never an error. Infrastructure failures
        raise ``CacheCheckError``.
        """
        ...

    async def upload(self, key: str, content_type: str, data: bytes) -> None:
        """Store ``data`` under ``key``, creating any container structure.

        Overwriting an existing key is allowed. Raises ``StorageUploadError``.
        """
        ...

    async def fetch(self, key: str) -> StoredArtifact:
        """Return the stored bytes and content type.

        Raises ``NotFoundError`` for unknown keys and ``StorageFetchError``
        for infrastructure failures.
        """
        ...

    def public_url(self, key: str) -> str:
        """Return the public URL of ``key`` (string formatting only, no I/O)."""
        ...
