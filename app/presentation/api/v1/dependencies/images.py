from fastapi import Request

from app.application.pipeline.resize.adapter_bundle import ResizeAdapters
from app.application.use_cases.image_resize import ResizeImageUseCase


def get_resize_adapters(request: Request) -> ResizeAdapters:
    """Adapters built once in the application lifespan."""
    return request.app.state.resize_adapters


def get_resize_use_case(request: Request) -> ResizeImageUseCase:
    """Compose the ResizeImageUseCase from the process-wide adapters."""
    return ResizeImageUseCase(get_resize_adapters(request))
