"""
Markstash v1 - Page Fetcher

Fetches the bookmarked page so its HTML can be searched for icon links.

Redirects are followed by hand; a redirect to a sign-in page ends the
fetch and leaves only base-domain discovery.
"""

import logging
from types import MappingProxyType
from urllib.parse import urljoin

import httpx

from .base import PageFetch

logger = logging.getLogger(__name__)

BROWSER_HEADERS = MappingProxyType({
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
})

# Matched case-sensitively against the redirect target
AUTH_REDIRECT_MARKERS = ("login", "signin", "auth", "accounts.google.com")


def is_auth_redirect(location: str) -> bool:
    """True if a redirect target looks like a sign-in page."""
    return any(marker in location for marker in AUTH_REDIRECT_MARKERS)


async def fetch_page(
    client: httpx.AsyncClient,
    url: str,
    timeout: float = 30.0,
    max_redirects: int = 10,
) -> PageFetch:
    """
    GET a page with browser-like headers, following at most ``max_redirects``.

    Never raises for network problems; a PageFetch with
    ``short_circuit_reason`` set is returned instead.

    Args:
        client: Shared HTTP client
        url: Absolute page URL
        timeout: Per-request timeout in seconds
        max_redirects: Redirect hops allowed before giving up

    Returns:
        PageFetch with the final URL and HTML on success
    """
    current_url = url
    redirects = 0

    while True:
        try:
            response = await client.get(
                current_url,
                headers=dict(BROWSER_HEADERS),
                timeout=timeout,
                follow_redirects=False,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info(f"Failed to fetch {current_url}: {e!r}")
            return PageFetch(final_url=current_url, short_circuit_reason=f"failed to fetch URL: {e}")

        if response.is_redirect:
            try:
                location = urljoin(str(response.url), response.headers.get("location", ""))
            except ValueError as e:
                logger.info(f"{current_url} redirects to an invalid location: {e}")
                return PageFetch(
                    final_url=current_url,
                    status_code=response.status_code,
                    short_circuit_reason="invalid redirect location",
                )
            if is_auth_redirect(location):
                logger.info(f"{current_url} redirects to sign-in page {location}, not following")
                return PageFetch(
                    final_url=current_url,
                    status_code=response.status_code,
                    short_circuit_reason="auth redirect",
                )
            if redirects >= max_redirects:
                logger.info(f"Too many redirects fetching {url}")
                return PageFetch(
                    final_url=current_url,
                    status_code=response.status_code,
                    short_circuit_reason="too many redirects",
                )
            redirects += 1
            current_url = location
            continue

        if response.status_code != 200:
            logger.info(f"{current_url} returned status {response.status_code}")
            return PageFetch(
                final_url=current_url,
                status_code=response.status_code,
                short_circuit_reason=f"received non-200 response code: {response.status_code}",
            )

        return PageFetch(
            final_url=str(response.url),
            html=response.text,
            status_code=response.status_code,
        )
