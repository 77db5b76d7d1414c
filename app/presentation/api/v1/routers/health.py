"""
Health check API endpoints
"""

from fastapi import APIRouter, Request

from app.core.config import settings
from app.core.monitoring import SystemHealth, health_checker

router = APIRouter(tags=["health"])


@router.get("/health", response_model=SystemHealth)
async def health_check(request: Request):
    """Process metrics plus the state of the shared resize resources."""
    adapters = getattr(request.app.state, "resize_adapters", None)
    storage = getattr(adapters, "storage", None)
    storage_path = (
        settings.local_fs_storage_path if getattr(storage, "name", None) == "local_fs" else None
    )
    return health_checker.get_system_health(adapters=adapters, storage_path=storage_path)
