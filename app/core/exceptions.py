"""
Custom exception handlers and error types
"""

from enum import Enum
import logging
import traceback
from typing import Optional

from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ImageResizerError(Exception):
    """Base exception for image resize errors"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class ValidationError(ImageResizerError):
    """Exception raised when request validation fails"""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        super().__init__(message, "VALIDATION_ERROR")
        self.validation_errors = validation_errors or []


class ConfigurationError(ImageResizerError):
    """Exception raised when configuration is invalid"""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message, "CONFIGURATION_ERROR")
        self.config_key = config_key


class CacheCheckError(ImageResizerError):
    """Infrastructure failure while checking whether a key is cached.

    Never surfaced to callers of the resize flow: it is logged and the
    request continues down the cache-miss path.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, "CACHE_CHECK_ERROR")
        self.key = key


class DownloadErrorKind(str, Enum):
    status = "status"
    network = "network"
    timeout = "timeout"
    payload_too_large = "payload_too_large"


class DownloadError(ImageResizerError):
    """Exception raised when the source image download fails"""

    kind: DownloadErrorKind = DownloadErrorKind.network

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, f"DOWNLOAD_{self.kind.value.upper()}")
        self.url = url


class DownloadStatusError(DownloadError):
    """Source responded with a non-2xx status"""

    kind = DownloadErrorKind.status

    def __init__(self, message: str, url: Optional[str] = None, status: int = 0):
        super().__init__(message, url)
        self.status = status


class DownloadNetworkError(DownloadError):
    """DNS, connection or TLS failure"""

    kind = DownloadErrorKind.network


class DownloadTimeoutError(DownloadError):
    kind = DownloadErrorKind.timeout


class PayloadTooLargeError(DownloadError):
    """Source payload exceeds the configured ceiling
    Args:
        limit (int): Configured maximum in bytes
        declared (Optional[int]): Declared Content-Length, if any
    """

    kind = DownloadErrorKind.payload_too_large

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        limit: int = 0,
        declared: Optional[int] = None,
    ):
        super().__init__(message, url)
        self.limit = limit
        self.declared = declared


class TransformError(ImageResizerError):
    """Exception raised when image transformation fails"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message, error_code or "TRANSFORM_ERROR")


class DecodeError(TransformError):
    """Source bytes are not a decodable image"""

    def __init__(self, message: str):
        super().__init__(message, "DECODE_ERROR")


class EncodeError(TransformError):
    def __init__(self, message: str):
        super().__init__(message, "ENCODE_ERROR")


class UnsupportedFormatError(TransformError):
    """Output format outside the supported set reached the transformer"""

    def __init__(self, message: str, image_format: Optional[str] = None):
        super().__init__(message, "UNSUPPORTED_FORMAT")
        self.image_format = image_format


class StorageError(ImageResizerError):
    """Base exception for storage backend failures"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message, error_code or "STORAGE_ERROR")
        self.key = key


class StorageUploadError(StorageError):
    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, key, "STORAGE_UPLOAD_ERROR")


class StorageFetchError(StorageError):
    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, key, "STORAGE_FETCH_ERROR")


class NotFoundError(StorageError):
    """Exception raised when a key was never cached"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, key, "NOT_FOUND")


def _error_body(error: str, exc: ImageResizerError) -> dict:
    return {
        "detail": {
            "error": error,
            "details": exc.message,
            "error_code": exc.error_code,
        }
    }


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning("Validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "error": "Validation error",
                "details": "Invalid request data",
                "errors": exc.errors(),
            }
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format"""
    logger.warning("HTTP exception: %s - %s", exc.status_code, exc.detail)

    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {"error": "HTTP Error", "details": str(exc.detail)}

    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


async def image_resizer_exception_handler(request: Request, exc: ImageResizerError):
    """Map the error taxonomy onto outward-facing status codes"""
    if isinstance(exc, NotFoundError):
        logger.info("Image not found: %s", exc.key)
        return JSONResponse(status_code=404, content=_error_body("Not found", exc))
    if isinstance(exc, DownloadError):
        logger.warning("Source download failed (%s): %s", exc.kind.value, exc.message)
        return JSONResponse(
            status_code=502, content=_error_body("Source download failed", exc)
        )
    if isinstance(exc, TransformError):
        logger.warning("Image transform failed: %s", exc.message)
        return JSONResponse(
            status_code=422, content=_error_body("Image processing failed", exc)
        )
    if isinstance(exc, ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return JSONResponse(
            status_code=400, content=_error_body("Validation error", exc)
        )

    logger.error("Image resizer error: %s", exc.message)
    return JSONResponse(
        status_code=500, content=_error_body("Internal server error", exc)
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.error("Unexpected error: %s: %s", type(exc).__name__, str(exc))
    logger.error("Traceback: %s", traceback.format_exc())

    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": "Internal server error",
                "details": "An unexpected error occurred",
            }
        },
    )
