import os
import logging
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from contextlib import asynccontextmanager

from app.core.exceptions import (
    ImageResizerError,
    general_exception_handler,
    http_exception_handler,
    image_resizer_exception_handler,
    validation_exception_handler,
)
from app.core.middleware import RequestLoggingMiddleware
from app.infrastructure.adapters.bundles.resize import get_resize_adapter_bundle
from app.presentation.api.v1.routers import images
from app.presentation.api.v1.routers import health
from app.core.config import settings


def configure_logging() -> None:
    """Configure logging: console, plus a rotating file when log_file is set"""
    log_handlers = [logging.StreamHandler()]
    if settings.log_file:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        log_handlers.append(
            RotatingFileHandler(
                settings.log_file,
                maxBytes=5 * 1024 * 1024,
                backupCount=2,
                encoding="utf-8",
            )
        )
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
        datefmt=settings.log_date_format,
        handlers=log_handlers,
    )
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("Starting Image Resizer API...")
    adapters = getattr(app.state, "resize_adapters", None)
    if adapters is None:
        adapters = get_resize_adapter_bundle()
        app.state.resize_adapters = adapters
    try:
        yield
    finally:
        logger.info("Shutting down Image Resizer API...")
        await adapters.aclose()


def create_application(adapters=None) -> FastAPI:
    """Create and configure FastAPI application

    Args:
        adapters: Prebuilt ResizeAdapters; built from settings at startup when omitted
    """

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    if adapters is not None:
        app.state.resize_adapters = adapters

    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(ImageResizerError, image_resizer_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(images.router, tags=["images"])
    api_v1.include_router(health.router)
    app.include_router(api_v1)

    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/api/v1/health", status_code=308)

    return app


# Create application instance
app = create_application()

if __name__ == "__main__":
    dev_mode = os.getenv("DEV_MODE", "false").lower() == "true"
    uvicorn.run(
        "app.presentation.main:app",
        host=settings.host,
        port=settings.port,
        reload=dev_mode,
    )
