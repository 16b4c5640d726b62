import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TypeVar

from app.logging.logger import Log

T = TypeVar("T")


class QueueFullError(Exception):
    """Raised when the pool has no free slot for another job."""


class ProcessingPool:
    """Bounded background executor.

    At most ``workers`` jobs run and ``capacity`` more wait; further
    submissions are rejected with QueueFullError instead of queueing.
    """

    def __init__(self, *, workers: int, capacity: int) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest")
        self._slots = threading.BoundedSemaphore(workers + capacity)
        self._limit = workers + capacity
        self._in_flight = 0
        self._lock = threading.Lock()

    def submit(self, fn: Callable[..., T], *args: Any) -> "Future[T]":
        """Schedule fn(*args).

        Raises:
            QueueFullError: if every slot is taken.
        """
        if not self._slots.acquire(blocking=False):
            raise QueueFullError(f"Processing pool is full ({self._limit} jobs)")
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError:
            self._slots.release()
            raise
        with self._lock:
            self._in_flight += 1
        future.add_done_callback(self._release)
        return future

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def shutdown(self, wait: bool = True) -> None:
        Log.info(f"Shutting down processing pool ({self.in_flight} jobs in flight)")
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def _release(self, future: "Future[Any]") -> None:
        with self._lock:
            self._in_flight -= 1
        self._slots.release()
        if not future.cancelled() and future.exception() is not None:
            Log.error(f"Background job raised: {future.exception()}")
