import threading


class VisitedRegistry:
    """Append-only sets of visited and discovered canonical URLs.

    ``try_mark`` is the single deduplication point of the crawl: whichever
    worker marks a URL first is the only one that processes it, whether the
    outcome is a fetched page, a robots.txt block or a failure.
    """

    def __init__(self):
        self._visited: set[str] = set()
        self._discovered: set[str] = set()
        self._lock = threading.Lock()

    def try_mark(self, url: str) -> bool:
        with self._lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            self._discovered.add(url)
            return True

    def is_visited(self, url: str) -> bool:
        with self._lock:
            return url in self._visited

    def discover(self, url: str) -> bool:
        """Record a URL seen in a page; True the first time it is seen."""
        with self._lock:
            if url in self._discovered:
                return False
            self._discovered.add(url)
            return True

    @property
    def discovered_count(self) -> int:
        with self._lock:
            return len(self._discovered)

    def __len__(self) -> int:
        with self._lock:
            return len(self._visited)
