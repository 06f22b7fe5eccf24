import sys
import threading
import time
from pathlib import Path

import httpx
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from politecrawl.utils.config_loader import Config


CRAWLER_ENV_KEYS = [
    "CRAWLER_USER_AGENT",
    "CRAWLER_WORKERS",
    "MAX_PAGES",
    "CRAWL_DELAY_DEFAULT",
    "CONNECT_TIMEOUT",
    "READ_TIMEOUT",
    "FRONTIER_POLL_TIMEOUT",
    "MAX_RUNTIME_SECONDS",
    "MAX_DOWNLOAD_BYTES",
    "MAX_REDIRECTS",
    "HTML_ONLY",
    "LOG_LEVEL",
    "LOG_PATH",
    "METRICS_PORT",
    "WORKER_ID",
]


@pytest.fixture(autouse=True)
def clean_crawler_env(monkeypatch):
    """Keep the developer's shell settings out of the tests."""
    for key in CRAWLER_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield


class FakeSite:
    """In-memory web served through httpx.MockTransport.

    ``pages`` maps full URLs to HTML; ``robots`` maps hosts to robots.txt
    bodies (hosts without an entry answer 404). ``dynamic`` builds pages on
    the fly for URLs missing from ``pages``.
    """

    def __init__(self, pages=None, robots=None, dynamic=None, latency=0.0):
        self.pages = dict(pages or {})
        self.robots = dict(robots or {})
        self.dynamic = dynamic
        self.latency = latency
        self.requests = []
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.requests.append((url, time.monotonic()))

        if self.latency:
            time.sleep(self.latency)

        if request.url.path == "/robots.txt":
            body = self.robots.get(request.url.host)
            if body is None:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, text=body, headers={"Content-Type": "text/plain"})

        html = self.pages.get(url)
        if html is None and self.dynamic is not None:
            html = self.dynamic(request)
        if html is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=html, headers={"Content-Type": "text/html; charset=utf-8"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def page_requests(self):
        return [url for url, _ in self.requests if not url.endswith("/robots.txt")]

    def robots_requests(self):
        return [url for url, _ in self.requests if url.endswith("/robots.txt")]


@pytest.fixture
def fake_site():
    return FakeSite


@pytest.fixture
def fast_config():
    def _build(**overrides):
        values = dict(
            crawler_user_agent="TestBot/1.0",
            crawler_workers=4,
            max_pages=50,
            crawl_delay_default=0.0,
            connect_timeout=1.0,
            read_timeout=1.0,
            frontier_poll_timeout=0.05,
            max_runtime_seconds=20.0,
        )
        values.update(overrides)
        return Config(**values)

    return _build
