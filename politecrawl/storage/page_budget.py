import threading


class PageBudget:
    """Global page counter with slot reservation.

    A worker reserves a slot before it takes a URL, then either commits it
    (the page was crawled) or releases it. Because committed plus reserved
    never exceeds ``max_pages``, concurrent workers cannot overshoot the
    budget however many fetches are in flight.
    """

    def __init__(self, max_pages: int):
        if max_pages <= 0:
            raise ValueError("max_pages must be positive")
        self.max_pages = max_pages
        self._committed = 0
        self._reserved = 0
        self._lock = threading.Lock()

    def try_reserve(self) -> bool:
        with self._lock:
            if self._committed + self._reserved >= self.max_pages:
                return False
            self._reserved += 1
            return True

    def release(self) -> None:
        with self._lock:
            if self._reserved <= 0:
                raise ValueError("release() without a matching reservation")
            self._reserved -= 1

    def commit(self) -> int:
        """Turn a reservation into a crawled page; returns the new count."""
        with self._lock:
            if self._reserved <= 0:
                raise ValueError("commit() without a matching reservation")
            self._reserved -= 1
            self._committed += 1
            return self._committed

    def reached(self) -> bool:
        with self._lock:
            return self._committed >= self.max_pages

    @property
    def count(self) -> int:
        with self._lock:
            return self._committed
