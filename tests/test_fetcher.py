import httpx

from politecrawl.fetcher import Fetcher


def make_fetcher(handler, **kwargs):
    return Fetcher("TestBot/1.0", transport=httpx.MockTransport(handler), **kwargs)


def test_fetch_returns_html_body_and_sends_user_agent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers.get("User-Agent")
        return httpx.Response(
            200,
            headers={"Content-Type": "text/html; charset=utf-8"},
            text="<html><body>Hello</body></html>",
        )

    with make_fetcher(handler) as fetcher:
        result = fetcher.fetch("http://example.com/")

    assert result.ok
    assert "Hello" in result.content
    assert result.error_category is None
    assert seen["ua"] == "TestBot/1.0"


def test_fetch_reports_non_success_status():
    def handler(request):
        return httpx.Response(404, headers={"Content-Type": "text/html"}, text="missing")

    with make_fetcher(handler) as fetcher:
        result = fetcher.fetch("http://example.com/missing")

    assert not result.ok
    assert result.status_code == 404
    assert result.error_category == "http_status"
    assert result.content == ""


def test_fetch_skips_non_html_content():
    def handler(request):
        return httpx.Response(200, headers={"Content-Type": "application/json"}, json={"ok": True})

    with make_fetcher(handler) as fetcher:
        result = fetcher.fetch("http://example.com/api")
        robots = fetcher.fetch("http://example.com/api", html_only=False)

    assert not result.ok
    assert result.error_category == "non_html_content"
    assert robots.ok


def test_fetch_skips_large_bodies():
    def handler(request):
        return httpx.Response(200, headers={"Content-Type": "text/html"}, content=b"x" * 50)

    with make_fetcher(handler, max_download_bytes=10) as fetcher:
        result = fetcher.fetch("http://example.com/large")

    assert not result.ok
    assert result.error_category == "body_too_large"


def test_fetch_turns_timeouts_into_failures():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with make_fetcher(handler) as fetcher:
        result = fetcher.fetch("http://slow.example.com/")

    assert not result.ok
    assert result.status_code == 0
    assert result.error_category == "network_timeout"


def test_fetch_turns_connection_errors_into_failures():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with make_fetcher(handler) as fetcher:
        result = fetcher.fetch("http://down.example.com/")

    assert not result.ok
    assert result.error_category == "connection_error"
    assert "refused" in result.error


def test_fetch_follows_redirects():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "http://example.com/new"})
        return httpx.Response(200, headers={"Content-Type": "text/html"}, text="<p>new</p>")

    with make_fetcher(handler) as fetcher:
        result = fetcher.fetch("http://example.com/old")

    assert result.ok
    assert result.content == "<p>new</p>"
