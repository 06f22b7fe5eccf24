import queue
import threading
from typing import Optional

from loguru import logger


class Frontier:
    """FIFO of URLs waiting for a fetch attempt, shared by all workers.

    Besides the queue itself the frontier counts outstanding work: a URL
    stays outstanding from ``push`` until the worker that popped it calls
    ``task_done``. The crawl graph is exhausted once nothing is outstanding.
    """

    def __init__(self):
        self._queue: "queue.Queue[str]" = queue.Queue()
        self._outstanding = 0
        self._lock = threading.Lock()

    def push(self, url: str) -> None:
        with self._lock:
            self._outstanding += 1
        self._queue.put_nowait(url)
        logger.trace(f"Enqueued URL: {url}")

    def pop(self, timeout: float) -> Optional[str]:
        """Wait up to ``timeout`` seconds for a URL; None if none arrived."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def task_done(self) -> None:
        with self._lock:
            if self._outstanding <= 0:
                raise ValueError("task_done() called more times than URLs were pushed")
            self._outstanding -= 1

    def is_exhausted(self) -> bool:
        with self._lock:
            return self._outstanding == 0

    def __len__(self) -> int:
        return self._queue.qsize()
