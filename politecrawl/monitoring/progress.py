import sys
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, TextIO


@dataclass
class CrawlSummary:
    pages_crawled: int
    urls_discovered: int
    urls_visited: int
    blocked: int
    failed: int
    elapsed: float
    timed_out: bool = False
    max_runtime_seconds: Optional[float] = None


@dataclass
class ProgressReporter:
    """Writes crawl progress, one line per page, to a text stream.

    Blocked and failed URLs are only counted here; they are reported on the
    log stream by the worker.
    """

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    blocked: int = 0
    failed: int = 0

    def __post_init__(self):
        self._lock = threading.Lock()

    def _write(self, line: str) -> None:
        with self._lock:
            print(line, file=self.stream, flush=True)

    def start(self, seed_url: str, max_pages: int) -> None:
        self._write(f"Starting crawler from: {seed_url}")
        self._write(f"Maximum pages to crawl: {max_pages}")

    def page(self, commit: Callable[[], int], domain: str, url: str, title: str) -> int:
        """Count the page through ``commit`` and print its line.

        Both happen under the output lock so the numbers on the stream stay
        in order however many workers finish at once.
        """
        with self._lock:
            count = commit()
            print(f"{count}. [{domain}] {title or url}", file=self.stream, flush=True)
        return count

    def blocked_url(self, url: str) -> None:
        with self._lock:
            self.blocked += 1

    def failed_url(self, url: str, reason: str) -> None:
        with self._lock:
            self.failed += 1

    def summary(self, summary: CrawlSummary) -> None:
        if summary.timed_out:
            self._write(f"Crawling timed out after {summary.max_runtime_seconds:g} seconds")
        self._write("")
        self._write("Crawling completed!")
        self._write(f"Total pages crawled: {summary.pages_crawled}")
        self._write(f"Total URLs discovered: {summary.urls_discovered}")
