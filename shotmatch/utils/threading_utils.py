import asyncio
import threading
import time
import functools
from typing import Any, Callable, Optional, TypeVar, Generic, List
from concurrent.futures import ThreadPoolExecutor

from config.settings import get_settings
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

class LatestValueCell(Generic[T]):
    """Single-slot, lock guarded handoff. Writers overwrite, readers never block on a writer for long."""

    def __init__(self, initial: Optional[T] = None):
        self._value: Optional[T] = initial
        self._version = 0
        self._lock = threading.Lock()

    def set(self, value: Optional[T]) -> int:
        """overwrite the slot, returns the new version"""
        with self._lock:
            self._value = value
            self._version += 1
            return self._version

    def get(self) -> Optional[T]:
        """read the current value"""
        with self._lock:
            return self._value

    @property
    def version(self) -> int:
        with self._lock:
            return self._version


class PerformanceMonitor:
    """Monitor performance of operations"""

    def __init__(self, max_samples: int = 100) -> None:
        self.max_samples = max_samples
        self.samples: List[float] = []
        self.lock = threading.Lock()

    def add_sample(self, duration: float) -> None:
        """add performance sample"""
        with self.lock:
            self.samples.append(duration)
            if len(self.samples) > self.max_samples:
                self.samples.pop(0)

    def get_stat(self) -> dict:
        """get performance statistics"""
        with self.lock:
            if not self.samples:
                return {'count': 0}

            avg = sum(self.samples) / len(self.samples)
            sorted_samples = sorted(self.samples)
            p50 = sorted_samples[len(sorted_samples) // 2]
            p95 = sorted_samples[int(len(sorted_samples) * 0.95)]

            return {
                'count': len(self.samples),
                'average_ms': round(avg * 1000, 2),
                'min_ms': round(sorted_samples[0] * 1000, 2),
                'max_ms': round(sorted_samples[-1] * 1000, 2),
                'p50_ms': round(p50 * 1000, 2),
                'p95_ms': round(p95 * 1000, 2),
            }


class ThreadPoolManager:
    """Worker pool for frame analysis, keeps CPU work off the event loop"""

    def __init__(self, max_workers: Optional[int] = None) -> None:
        settings = get_settings()
        self.max_workers = max_workers or settings.threading.max_workers

        self.analysis_pool = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="analysis"
        )
        self.monitor = PerformanceMonitor()

        logger.info("thread_pool_initialized", max_workers=self.max_workers)

    async def run_analysis_task(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        """run analysis task in the pool and await it on the loop"""

        start_time = time.perf_counter()

        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(
                self.analysis_pool, functools.partial(func, *args, **kwargs)
            )

            duration = time.perf_counter() - start_time
            self.monitor.add_sample(duration)

            logger.debug(
                "thread_task_completed",
                duration_ms=round(duration * 1000, 2),
                function=getattr(func, '__name__', repr(func)),
            )
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.debug(
                "thread_task_error",
                duration_ms=round(duration * 1000, 2),
                function=getattr(func, '__name__', repr(func)),
                error=str(e)
            )
            raise

    def get_performance_stats(self) -> dict:
        """get performance statistics"""
        return {'analysis': self.monitor.get_stat()}

    def shutdown(self, wait: bool = True) -> None:
        """shutdown the pool"""
        logger.info("shutdown_thread_pool")
        self.analysis_pool.shutdown(wait=wait)
        logger.info("thread_pool_shutdown_completed")

#global thread manager
_thread_manager: Optional[ThreadPoolManager] = None

def get_thread_manager() -> ThreadPoolManager:
    """get thread pool manager"""
    global _thread_manager
    if _thread_manager is None:
        _thread_manager = ThreadPoolManager()
    return _thread_manager
