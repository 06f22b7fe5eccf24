import time
from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger


@dataclass
class FetchResult:
    url: str
    status_code: int
    content: str = ""
    content_type: str = ""
    error: Optional[str] = None
    error_category: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300


class Fetcher:
    """Blocking HTTP GET with bounded connect/read timeouts.

    One httpx.Client (and its connection pool) is shared by every worker
    thread. ``fetch`` never raises for per-URL problems; they come back as a
    failed FetchResult carrying an ``error_category``.
    """

    def __init__(
        self,
        user_agent: str,
        connect_timeout: float = 5.0,
        read_timeout: float = 5.0,
        max_download_bytes: int = 2_000_000,
        max_redirects: int = 10,
        html_only: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.max_download_bytes = max_download_bytes
        self.html_only = html_only
        self.client = httpx.Client(
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            follow_redirects=True,
            max_redirects=max_redirects,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.BaseTransport] = None) -> "Fetcher":
        return cls(
            user_agent=config.crawler_user_agent,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            max_download_bytes=config.max_download_bytes,
            max_redirects=config.max_redirects,
            html_only=config.html_only,
            transport=transport,
        )

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def fetch(self, url: str, html_only: Optional[bool] = None) -> FetchResult:
        html_only = self.html_only if html_only is None else html_only
        start = time.perf_counter()

        try:
            resp = self.client.get(url)
        except httpx.TimeoutException as exc:
            return self._failure(url, 0, "network_timeout", exc, start)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            return self._failure(url, 0, "invalid_url", exc, start)
        except httpx.TooManyRedirects as exc:
            return self._failure(url, 0, "redirect_loop", exc, start)
        except httpx.HTTPError as exc:
            return self._failure(url, 0, "connection_error", exc, start)
        except ValueError as exc:
            # httpx rejects some malformed URLs before building a request
            return self._failure(url, 0, "invalid_url", exc, start)

        content_type = (resp.headers.get("Content-Type") or "").lower()

        if not 200 <= resp.status_code < 300:
            return self._failure(
                url, resp.status_code, "http_status", f"HTTP {resp.status_code}", start, content_type
            )

        if len(resp.content) > self.max_download_bytes:
            return self._failure(
                url,
                resp.status_code,
                "body_too_large",
                f"{len(resp.content)} bytes exceeds {self.max_download_bytes}",
                start,
                content_type,
            )

        if html_only and content_type and "html" not in content_type:
            return self._failure(
                url, resp.status_code, "non_html_content", content_type, start, content_type
            )

        return FetchResult(
            url=url,
            status_code=resp.status_code,
            content=resp.text or "",
            content_type=content_type,
            elapsed=time.perf_counter() - start,
        )

    def _failure(self, url, status_code, category, error, start, content_type="") -> FetchResult:
        message = str(error) or category
        logger.debug(f"Fetch failed for {url}: {category} ({message})")
        return FetchResult(
            url=url,
            status_code=status_code,
            content_type=content_type,
            error=message,
            error_category=category,
            elapsed=time.perf_counter() - start,
        )
