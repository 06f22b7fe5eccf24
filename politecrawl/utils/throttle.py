import threading
import time
from typing import Callable, Dict, Optional

from loguru import logger


class ShutdownRequested(Exception):
    """Raised inside a worker when the coordinator asked every worker to stop."""


class DomainThrottle:
    """Enforces a minimum delay between two requests to the same domain.

    The read-wait-write sequence for one domain runs under that domain's
    lock, so two workers can never both see "enough time has passed".
    Requests to different domains do not wait on each other.
    """

    def __init__(
        self,
        min_delay: float,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_delay = min_delay
        self.stop_event = stop_event or threading.Event()
        self._clock = clock
        self._last_request: Dict[str, float] = {}
        self._domain_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, domain: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._domain_locks.get(domain)
            if lock is None:
                lock = self._domain_locks[domain] = threading.Lock()
            return lock

    def await_turn(self, domain: str) -> float:
        """Block until ``domain`` may be requested again and claim the slot.

        Returns the timestamp recorded as the domain's new last request.
        Raises ShutdownRequested if the stop event fires while waiting.
        """
        with self._lock_for(domain):
            last = self._last_request.get(domain)
            if last is not None:
                while True:
                    remaining = self.min_delay - (self._clock() - last)
                    if remaining <= 0:
                        break
                    logger.trace(f"Throttling {domain} for {remaining:.3f}s")
                    if self.stop_event.wait(remaining):
                        raise ShutdownRequested()

            if self.stop_event.is_set():
                raise ShutdownRequested()

            now = self._clock()
            self._last_request[domain] = now
            return now

    def last_request(self, domain: str) -> Optional[float]:
        with self._locks_guard:
            return self._last_request.get(domain)

    def __len__(self) -> int:
        with self._locks_guard:
            return len(self._last_request)
