"""
Health reporting for the resize service
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional

import psutil
from pydantic import BaseModel

# (warning, unhealthy) thresholds in percent
MEMORY_LIMITS = (80.0, 90.0)
DISK_LIMITS = (85.0, 95.0)
CPU_LIMITS = (80.0, 95.0)


class PipelineStats(BaseModel):
    """Live view of the shared resize resources"""

    storage_backend: Optional[str] = None
    downloads_in_flight: Optional[int] = None
    download_limit: Optional[int] = None
    transform_workers: Optional[int] = None


class SystemHealth(BaseModel):
    status: str
    timestamp: datetime
    uptime: float
    memory_usage: Dict[str, Any]
    disk_usage: Dict[str, Any]
    cpu_usage: float
    storage_backend: Optional[str] = None
    storage_disk: Optional[Dict[str, Any]] = None
    pipeline: PipelineStats = PipelineStats()


def _disk(path: str) -> Dict[str, Any]:
    usage = psutil.disk_usage(path)
    return {
        "path": path,
        "total": usage.total,
        "used": usage.used,
        "free": usage.free,
        "percentage": usage.percent,
    }


def classify(memory_pct: float, disk_pct: float, cpu_pct: float) -> str:
    """Worst of the three readings decides the status.

    Example:
        >>> classify(50.0, 90.0, 10.0)
        'warning'
    """
    readings = ((memory_pct, MEMORY_LIMITS), (disk_pct, DISK_LIMITS), (cpu_pct, CPU_LIMITS))
    if any(value > limits[1] for value, limits in readings):
        return "unhealthy"
    if any(value > limits[0] for value, limits in readings):
        return "warning"
    return "healthy"


def pipeline_stats(adapters) -> PipelineStats:
    """Read counters off the resize adapters, tolerating missing pieces."""
    if adapters is None:
        return PipelineStats()
    storage = getattr(adapters, "storage", None)
    downloader = getattr(adapters, "downloader", None)
    transformer = getattr(adapters, "transformer", None)
    return PipelineStats(
        storage_backend=getattr(storage, "name", None),
        downloads_in_flight=getattr(downloader, "in_flight", None),
        download_limit=getattr(downloader, "max_concurrent", None),
        transform_workers=getattr(transformer, "max_workers", None),
    )


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def memory(self) -> Dict[str, Any]:
        vm = psutil.virtual_memory()
        return {
            "total": vm.total,
            "available": vm.available,
            "used": vm.used,
            "percentage": vm.percent,
        }

    def cpu(self) -> float:
        # non-blocking: usage since the previous call
        return psutil.cpu_percent(interval=None)

    def storage_disk(self, storage_path: Optional[str]) -> Optional[Dict[str, Any]]:
        """Disk usage of the local storage root, when there is one"""
        if not storage_path:
            return None
        try:
            return _disk(storage_path)
        except OSError:
            return None

    def get_system_health(
        self,
        adapters=None,
        storage_path: Optional[str] = None,
    ) -> SystemHealth:
        memory = self.memory()
        disk = _disk("/")
        cpu = self.cpu()
        stats = pipeline_stats(adapters)

        return SystemHealth(
            status=classify(memory["percentage"], disk["percentage"], cpu),
            timestamp=datetime.now(),
            uptime=time.time() - self.start_time,
            memory_usage=memory,
            disk_usage=disk,
            cpu_usage=cpu,
            storage_backend=stats.storage_backend,
            storage_disk=self.storage_disk(storage_path),
            pipeline=stats,
        )


health_checker = HealthChecker()
