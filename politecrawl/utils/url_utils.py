from urllib.parse import urljoin, urlsplit, urlunsplit

ALLOWED_SCHEMES = ("http", "https")
TRACKING_PARAM_PREFIXES = ("utm_",)
TRACKING_PARAMS = frozenset({"fbclid", "gclid"})
DEFAULT_PORTS = {"http": 80, "https": 443}


def _is_tracking_param(segment: str) -> bool:
    name = segment.split("=", 1)[0].lower()
    return name in TRACKING_PARAMS or name.startswith(TRACKING_PARAM_PREFIXES)


def _clean_query(query: str) -> str:
    # Empty segments come from "&&" or a leading/trailing "&" and are dropped
    # together with tracking parameters, which also removes a bare "?".
    kept = [seg for seg in query.split("&") if seg and not _is_tracking_param(seg)]
    return "&".join(kept)


def normalize_url(url: str) -> str:
    """Return the canonical form of an absolute URL.

    The fragment and tracking parameters are removed, scheme and host are
    lower-cased and default ports dropped. Applying it twice gives the same
    result. A URL that cannot be parsed is returned unchanged.
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return url

    scheme = parts.scheme.lower()
    netloc = parts.netloc
    if parts.hostname:
        host = parts.hostname.lower()
        if ":" in host:
            host = f"[{host}]"
        if port is not None and DEFAULT_PORTS.get(scheme) != port:
            host = f"{host}:{port}"
        userinfo = netloc.rpartition("@")[0] if "@" in netloc else ""
        netloc = f"{userinfo}@{host}" if userinfo else host

    path = parts.path
    if netloc and not path:
        path = "/"

    return urlunsplit((scheme, netloc, path, _clean_query(parts.query), ""))


def resolve_url(base_url: str, link: str) -> str | None:
    """Resolve ``link`` against ``base_url`` and normalize it.

    Returns None for links that cannot be resolved or that do not use an
    http(s) scheme.
    """
    try:
        absolute = urljoin(base_url, link.strip())
        scheme = urlsplit(absolute).scheme.lower()
    except ValueError:
        return None

    if scheme not in ALLOWED_SCHEMES:
        return None

    normalized = normalize_url(absolute)
    try:
        if not urlsplit(normalized).hostname:
            return None
    except ValueError:
        return None
    return normalized


def get_domain(url: str) -> str:
    """Lower-cased host of ``url``, without port; empty string on failure."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def get_robots_url(url: str) -> str | None:
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}/robots.txt"
