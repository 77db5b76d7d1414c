from __future__ import annotations

import threading
from typing import Dict, Tuple

from app.core.exceptions import NotFoundError
from app.core.pyd_schemas import StoredArtifact
from app.infrastructure.adapters.storage_base import StorageBackendBase


class InMemoryStorageBackend(StorageBackendBase):
    """Process-lifetime map of key -> (content type, bytes).

    For development and tests only: nothing survives a restart, memory grows
    with every stored image and instances are not shared between processes.
    """

    name = "in_memory"

    def __init__(self, base_url: str = "") -> None:
        super().__init__(base_url)
        self._items: Dict[str, Tuple[str, bytes]] = {}
        self._lock = threading.Lock()

    async def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    async def upload(self, key: str, content_type: str, data: bytes) -> None:
        with self._lock:
            self._items[key] = (content_type, bytes(data))

    async def fetch(self, key: str) -> StoredArtifact:
        with self._lock:
            item = self._items.get(key)
        if item is None:
            raise NotFoundError(f"Image not found: {key}", key=key)
        content_type, data = item
        return StoredArtifact(data=data, content_type=content_type)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
