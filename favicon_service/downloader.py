"""
Markstash v1 - Icon Downloader

Downloads a candidate icon and encodes it as a data URI.
"""

import base64
import logging

import httpx

from .base import FaviconResult

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/x-icon"


def encode_data_uri(content: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
    """Build a ``data:<type>;base64,<payload>`` URI."""
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{payload}"


async def download_icon(
    client: httpx.AsyncClient,
    icon_url: str,
    timeout: float = 15.0,
) -> FaviconResult:
    """
    Download an icon without following redirects.

    Only a 200 response with a non-empty body counts as success; a redirect
    is treated like any other non-200 status.

    Args:
        client: Shared HTTP client
        icon_url: Absolute URL of the icon
        timeout: Request timeout in seconds

    Returns:
        FaviconResult carrying the data URI, or the reason it failed
    """
    try:
        response = await client.get(icon_url, timeout=timeout, follow_redirects=False)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug(f"Failed to download icon {icon_url}: {e!r}")
        return FaviconResult.failure(f"failed to download image: {e}")

    if response.status_code != 200:
        logger.debug(f"Icon {icon_url} returned status {response.status_code}")
        return FaviconResult.failure(f"received non-200 response code: {response.status_code}")

    if not response.content:
        logger.debug(f"Icon {icon_url} returned an empty body")
        return FaviconResult.failure("empty image data")

    content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
    return FaviconResult.found(encode_data_uri(response.content, content_type))
