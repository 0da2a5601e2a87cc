"""
Client-side rate limiting for upstream APIs.

Caps the number of in-flight requests and enforces a minimum spacing
between request starts. Shared by every worker thread using one client.
"""
import threading
import time
from contextlib import contextmanager
from typing import Iterator

from paddock.utils.logger import logger


class RateLimiter:
    def __init__(self, max_concurrent: int = 4, min_delay: float = 0.0) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.max_concurrent = max_concurrent
        self.min_delay = min_delay
        self._semaphore = threading.BoundedSemaphore(max_concurrent)
        self._spacing_lock = threading.Lock()
        self._last_request_time: float | None = None

    def _wait_for_slot(self) -> None:
        with self._spacing_lock:
            if self._last_request_time is not None and self.min_delay > 0:
                wait = self.min_delay - (time.monotonic() - self._last_request_time)
                if wait > 0:
                    logger.debug(f"Rate limiting: waiting {wait:.3f}s")
                    time.sleep(wait)
            self._last_request_time = time.monotonic()

    @contextmanager
    def acquire(self) -> Iterator[None]:
        """Hold one concurrency permit for the duration of the block."""
        self._semaphore.acquire()
        try:
            self._wait_for_slot()
            yield
        finally:
            self._semaphore.release()
