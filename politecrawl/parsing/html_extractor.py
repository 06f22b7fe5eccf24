"""Pattern-based extraction of links and titles from HTML.

These are regular expressions, not an HTML parser. Malformed markup may make
them miss an anchor or pick up text that only looks like one; that is
accepted in exchange for never failing on broken documents. An href value
cannot span a line or contain ``<``/``>``, so an unterminated tag only loses
its own link.
"""
from __future__ import annotations

import html as html_lib
import re

from politecrawl.utils.url_utils import resolve_url

LINK_PATTERN = re.compile(
    r"""<a\s(?:[^>]*?\s)?href\s*=\s*(["'])([^<>\r\n]*?)\1""",
    re.IGNORECASE,
)
TITLE_PATTERN = re.compile(r"<title[^>]*>(.*?)</title\s*>", re.IGNORECASE | re.DOTALL)
WHITESPACE = re.compile(r"\s+")


def iter_hrefs(html: str):
    for match in LINK_PATTERN.finditer(html):
        yield html_lib.unescape(match.group(2)).strip()


def extract_links(html: str, base_url: str) -> set[str]:
    """Absolute, normalized http(s) URLs of every anchor in ``html``."""
    links: set[str] = set()
    for href in iter_hrefs(html):
        if not href or href.lower().startswith("javascript:"):
            continue
        resolved = resolve_url(base_url, href)
        if resolved:
            links.add(resolved)
    return links


def extract_title(html: str) -> str:
    match = TITLE_PATTERN.search(html)
    if not match:
        return ""
    return WHITESPACE.sub(" ", html_lib.unescape(match.group(1))).strip()
