"""
Markstash v1 - Standard Icon Locations

Checks the conventional icon paths of a site with HEAD requests.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

STANDARD_PATHS = (
    "/favicon.ico",
    "/apple-touch-icon.png",
    "/apple-touch-icon-120x120.png",
    "/apple-touch-icon-152x152.png",
    "/apple-touch-icon-180x180.png",
    "/apple-touch-icon-precomposed.png",
    "/apple-icon.png",
    "/android-chrome-192x192.png",
    "/icon-192x192.png",
    "/icon.png",
    "/favicon.png",
    "/favicon-32x32.png",
    "/favicon-16x16.png",
)


async def probe_standard_locations(
    client: httpx.AsyncClient,
    origin: str,
    timeout: float = 10.0,
) -> Optional[str]:
    """
    Return the first standard icon URL on the origin that answers HEAD with 200.

    Redirects are not followed. Errors on one path move on to the next.
    """
    for path in STANDARD_PATHS:
        icon_url = origin + path
        try:
            response = await client.head(icon_url, timeout=timeout, follow_redirects=False)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"HEAD {icon_url} failed: {e!r}")
            continue

        if response.status_code == 200:
            logger.debug(f"Found standard icon location {icon_url}")
            return icon_url

    return None
