from __future__ import annotations

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.exceptions import (
    CacheCheckError,
    NotFoundError,
    StorageFetchError,
    StorageUploadError,
)
from app.core.pyd_schemas import StoredArtifact
from app.core.storage_config import ObjectStoreConfig
from app.infrastructure.adapters.storage_base import StorageBackendBase

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
NO_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3StorageBackend(StorageBackendBase):
    """S3-compatible object store (AWS S3 or MinIO with path-style addressing).

    boto3 is synchronous, so each call runs in a worker thread.
    """

    name = "s3"

    def __init__(self, config: ObjectStoreConfig, base_url: str = "", client=None) -> None:
        super().__init__(base_url)
        self.bucket = config.bucket
        self._client = client or boto3.client(
            "s3",
            endpoint_url=config.endpoint_url or None,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=Config(s3={"addressing_style": "path"}),
        )
        self._bucket_ready = False
        self._bucket_lock = asyncio.Lock()

    async def exists(self, key: str) -> bool:
        def _head() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=key)
                return True
            except ClientError as e:
                if _error_code(e) in NOT_FOUND_CODES:
                    return False
                raise

        try:
            return await asyncio.to_thread(_head)
        except (ClientError, BotoCoreError) as e:
            raise CacheCheckError(f"S3 error checking {key}: {e}", key=key) from e

    async def _ensure_bucket(self) -> None:
        """Create the bucket on first upload if it does not exist yet."""
        if self._bucket_ready:
            return
        async with self._bucket_lock:
            if self._bucket_ready:
                return

            def _ensure() -> None:
                try:
                    self._client.head_bucket(Bucket=self.bucket)
                except ClientError as e:
                    if _error_code(e) not in NO_BUCKET_CODES:
                        raise
                    logger.info("Creating bucket %s", self.bucket)
                    self._client.create_bucket(Bucket=self.bucket)

            await asyncio.to_thread(_ensure)
            self._bucket_ready = True

    async def upload(self, key: str, content_type: str, data: bytes) -> None:
        def _put() -> None:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )

        try:
            await self._ensure_bucket()
            await asyncio.to_thread(_put)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload %s to bucket %s: %s", key, self.bucket, e)
            raise StorageUploadError(f"Failed to upload image to S3: {key}", key=key) from e

    async def fetch(self, key: str) -> StoredArtifact:
        def _get() -> StoredArtifact:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
            return StoredArtifact(
                data=data,
                content_type=response.get("ContentType") or "application/octet-stream",
            )

        try:
            return await asyncio.to_thread(_get)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise NotFoundError(f"Image not found: {key}", key=key) from e
            raise StorageFetchError(f"Failed to get image from S3: {key}", key=key) from e
        except BotoCoreError as e:
            raise StorageFetchError(f"Failed to get image from S3: {key}", key=key) from e
