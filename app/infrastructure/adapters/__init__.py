from .storage_base import StorageBackendBase
from .storage_in_memory import InMemoryStorageBackend
from .storage_local_fs import LocalFSStorageBackend
from .storage_s3 import S3StorageBackend
from .fetch_limiter import FetchLimiter
from .image_codec_pillow import PillowImageCodec
from .image_transformer import ImageTransformer

__all__ = [
    "StorageBackendBase",
    "InMemoryStorageBackend",
    "LocalFSStorageBackend",
    "S3StorageBackend",
    "FetchLimiter",
    "PillowImageCodec",
    "ImageTransformer",
]
