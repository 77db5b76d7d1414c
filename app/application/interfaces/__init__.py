from .storage_repo import IStorageBackend
from .asset_repo import IImageDownloader
from .image_processor import IImageTransformer
from .image_codec import IImageCodec
from .resize_adapters import IResizeAdapters, ICacheKeyDeriver

__all__ = [
    "IStorageBackend",
    "IImageDownloader",
    "IImageTransformer",
    "IImageCodec",
    "IResizeAdapters",
    "ICacheKeyDeriver",
]
