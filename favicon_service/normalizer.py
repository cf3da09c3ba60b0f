"""
Markstash v1 - URL Normalization

Turns user-supplied bookmark URLs into the origin key used by the cache.
"""

from urllib.parse import urlsplit

SCHEME_PREFIXES = ("http://", "https://")


def ensure_scheme(url: str) -> str:
    """Prefix https:// when the URL carries no http(s) scheme."""
    if not url.startswith(SCHEME_PREFIXES):
        return "https://" + url
    return url


def normalize_origin(url: str) -> str:
    """
    Reduce a URL to its ``scheme://host`` origin.

    Never raises: a URL that cannot be parsed is returned as-is (with the
    scheme prefix applied) and simply becomes a less useful cache key.

    >>> normalize_origin("example.com/page")
    'https://example.com'
    """
    url = ensure_scheme(url)
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    host = parts.netloc.rpartition("@")[2]
    return f"{parts.scheme}://{host}"


def bare_domain(url: str) -> str:
    """Lower-cased host with any leading ``www.`` removed."""
    try:
        host = urlsplit(ensure_scheme(url)).netloc.rpartition("@")[2].lower()
    except ValueError:
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host
