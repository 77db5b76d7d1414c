"""
Performance profiles for downloads and the transform worker pool
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

MB = 1024 * 1024


def cpu_count() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class PerformanceConfig:
    """Resource limits for the resize pipeline.

    Attributes:
        max_concurrent_downloads: Ceiling on simultaneous outbound downloads
        http_timeout: Per-download timeout in seconds
        max_image_size: Largest accepted source payload in bytes
        cpu_thread_pool_size: Transform worker count (None = CPU count)
    """

    max_concurrent_downloads: int = 20
    http_timeout: float = 30.0
    max_image_size: int = 50 * MB
    cpu_thread_pool_size: Optional[int] = None

    @classmethod
    def high_throughput(cls) -> "PerformanceConfig":
        return cls(
            max_concurrent_downloads=50,
            http_timeout=15.0,
            max_image_size=100 * MB,
            cpu_thread_pool_size=cpu_count(),
        )

    @classmethod
    def low_latency(cls) -> "PerformanceConfig":
        return cls(
            max_concurrent_downloads=10,
            http_timeout=10.0,
            max_image_size=20 * MB,
            cpu_thread_pool_size=cpu_count(),
        )

    @classmethod
    def memory_efficient(cls) -> "PerformanceConfig":
        return cls(
            max_concurrent_downloads=5,
            http_timeout=45.0,
            max_image_size=10 * MB,
            cpu_thread_pool_size=max(1, cpu_count() // 2),
        )

    @classmethod
    def from_settings(cls, settings) -> "PerformanceConfig":
        """Build from the named profile, then apply explicitly set overrides.

        Unknown profile names fall through to the defaults.
        """
        profiles = {
            "high_throughput": cls.high_throughput,
            "low_latency": cls.low_latency,
            "memory_efficient": cls.memory_efficient,
        }
        name = (settings.performance_profile or "").strip().lower()
        config = profiles[name]() if name in profiles else cls()

        overrides = {}
        if settings.max_concurrent_downloads is not None:
            overrides["max_concurrent_downloads"] = int(settings.max_concurrent_downloads)
        if settings.http_timeout_secs is not None:
            overrides["http_timeout"] = float(settings.http_timeout_secs)
        if settings.max_image_size_mb is not None:
            overrides["max_image_size"] = int(settings.max_image_size_mb) * MB
        if settings.cpu_thread_pool_size is not None:
            overrides["cpu_thread_pool_size"] = int(settings.cpu_thread_pool_size)
        return replace(config, **overrides) if overrides else config

    def worker_pool_size(self) -> int:
        return max(1, self.cpu_thread_pool_size or cpu_count())
