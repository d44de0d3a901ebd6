# ========================
# measurement_data/utils/performance_monitor.py
# ========================

"""
Performance Monitoring Utilities

Stage timing and memory figures for pipeline runs.
"""

import logging
import os
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

import psutil

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """
    Tracks elapsed time per named stage and peak resident memory.

    Stages are timed with ``stage()``; the same stage name used twice
    accumulates.
    """

    def __init__(self, name: str = "Pipeline"):
        """
        Initialize performance monitor.

        Args:
            name (str): Name for this monitoring session
        """
        self.name = name
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.peak_memory_mb = 0.0
        self.stage_ms: Dict[str, float] = {}

    def start_monitoring(self) -> None:
        """Start performance monitoring."""
        self.start_time = time.perf_counter()
        self.peak_memory_mb = self._get_memory_usage_mb()
        logger.debug(f"{self.name} - monitoring started, memory {self.peak_memory_mb:.2f} MB")

    @contextmanager
    def stage(self, name: str):
        """Time the enclosed block under ``name``."""
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed = (time.perf_counter() - started) * 1000
            self.stage_ms[name] = self.stage_ms.get(name, 0.0) + elapsed
            self.peak_memory_mb = max(self.peak_memory_mb, self._get_memory_usage_mb())

    def elapsed_ms(self) -> float:
        """Milliseconds since monitoring started (or until it stopped)."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000

    def stop_monitoring(self) -> Dict[str, Any]:
        """
        Stop monitoring and return performance summary.

        Returns:
            dict: Total and per-stage milliseconds plus peak memory
        """
        self.end_time = time.perf_counter()
        summary = {
            'name': self.name,
            'total_ms': self.elapsed_ms(),
            'stages_ms': dict(self.stage_ms),
            'peak_memory_mb': self.peak_memory_mb,
        }
        logger.debug(f"{self.name} - monitoring stopped: {summary}")
        return summary

    def _get_memory_usage_mb(self) -> float:
        """Resident memory of this process in MB."""
        memory_bytes = psutil.Process(os.getpid()).memory_info().rss
        return memory_bytes / (1024 * 1024)


@contextmanager
def monitor_performance(name: str = "Pipeline"):
    """
    Context manager for easy performance monitoring.

    Args:
        name (str): Name for this monitoring session

    Yields:
        PerformanceMonitor: Monitor instance
    """
    monitor = PerformanceMonitor(name)
    monitor.start_monitoring()
    try:
        yield monitor
    finally:
        monitor.stop_monitoring()


class SystemResourceMonitor:
    """Monitor system-wide resource usage."""

    @staticmethod
    def get_system_stats() -> Dict[str, Any]:
        """Get current process and system resource statistics."""
        process = psutil.Process(os.getpid())
        memory = psutil.virtual_memory()
        return {
            'process_memory_mb': process.memory_info().rss / (1024 * 1024),
            'cpu_percent': psutil.cpu_percent(interval=None),
            'cpu_count': psutil.cpu_count(),
            'memory_available_gb': memory.available / (1024 ** 3),
            'memory_used_percent': memory.percent,
        }
