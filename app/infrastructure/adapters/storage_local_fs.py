from __future__ import annotations

import errno
import logging
import mimetypes
import stat as stat_module
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from app.core.exceptions import (
    CacheCheckError,
    NotFoundError,
    StorageFetchError,
    StorageUploadError,
)
from app.core.pyd_schemas import StoredArtifact
from app.infrastructure.adapters.storage_base import StorageBackendBase

logger = logging.getLogger(__name__)

CONTENT_TYPE_SUFFIX = ".content-type"


class LocalFSStorageBackend(StorageBackendBase):
    """Store images as files under ``base_path/<key>``.

    The content type is kept in a ``<key>.content-type`` sidecar. Files are
    written to a temporary name and renamed into place, so a key is either
    absent or complete.
    """

    name = "local_fs"

    def __init__(self, base_path: str | Path, base_url: str = "") -> None:
        super().__init__(base_url)
        self.base_path = Path(base_path).resolve()

    def _path_for(self, key: str) -> Path:
        try:
            path = (self.base_path / key).resolve()
        except OSError as e:
            raise ValueError(f"Unusable key {key!r}: {e}") from e
        if path == self.base_path or self.base_path not in path.parents:
            raise ValueError(f"Key escapes storage root: {key!r}")
        # sidecars and in-progress writes are not addressable as keys
        if path.name.endswith(CONTENT_TYPE_SUFFIX) or path.name.startswith("."):
            raise ValueError(f"Reserved storage name: {key!r}")
        return path

    async def exists(self, key: str) -> bool:
        try:
            path = self._path_for(key)
        except ValueError:
            return False
        try:
            info = await aiofiles.os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            if e.errno == errno.ENAMETOOLONG:
                return False
            raise CacheCheckError(f"Failed to stat {path}: {e}", key=key) from e
        return stat_module.S_ISREG(info.st_mode)

    async def upload(self, key: str, content_type: str, data: bytes) -> None:
        try:
            path = self._path_for(key)
        except ValueError as e:
            raise StorageUploadError(str(e), key=key) from e

        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(
                path.with_name(path.name + CONTENT_TYPE_SUFFIX), "w", encoding="utf-8"
            ) as f:
                await f.write(content_type)
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            try:
                await aiofiles.os.remove(tmp_path)
            except OSError:
                pass
            raise StorageUploadError(
                f"Failed to write image to local file system: {path}", key=key
            ) from e

    async def fetch(self, key: str) -> StoredArtifact:
        try:
            path = self._path_for(key)
        except ValueError as e:
            raise NotFoundError(f"Image not found: {key}", key=key) from e

        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise NotFoundError(f"Image not found: {key}", key=key) from e
        except OSError as e:
            if e.errno == errno.ENAMETOOLONG:
                raise NotFoundError(f"Image not found: {key}", key=key) from e
            raise StorageFetchError(
                f"Failed to read image from local file system: {path}", key=key
            ) from e

        return StoredArtifact(data=data, content_type=await self._content_type(path))

    async def _content_type(self, path: Path) -> str:
        try:
            async with aiofiles.open(
                path.with_name(path.name + CONTENT_TYPE_SUFFIX), "r", encoding="utf-8"
            ) as f:
                return (await f.read()).strip()
        except OSError:
            guessed, _ = mimetypes.guess_type(path.name)
            logger.debug("No content type sidecar for %s; guessed %s", path, guessed)
            return guessed or "application/octet-stream"
