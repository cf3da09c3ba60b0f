"""
Markstash v1 - Resolution Strategies

The steps of the favicon cascade. Each one tries to produce an icon for the
URL in the resolution context; the resolver runs them in order and stops at
the first success.
"""

import logging

import httpx

from .base import BaseStrategy, FaviconResult, ResolutionContext
from .downloader import download_icon
from .extractors import find_icon_candidates, find_icon_with_regex
from .known_services import known_service_icon
from .normalizer import normalize_origin
from .prober import probe_standard_locations

logger = logging.getLogger(__name__)


class _NetworkStrategy(BaseStrategy):
    """Strategy holding the shared client and download timeout."""

    def __init__(self, client: httpx.AsyncClient, download_timeout: float = 15.0):
        self.client = client
        self.download_timeout = download_timeout

    async def download(self, icon_url: str) -> FaviconResult:
        result = await download_icon(self.client, icon_url, timeout=self.download_timeout)
        if result.ok:
            return FaviconResult.found(result.data_uri, source=self.name)
        return result


class KnownServiceStrategy(_NetworkStrategy):
    """Download the hardcoded icon of a well-known site."""

    name = "known_service"

    async def attempt(self, context: ResolutionContext) -> FaviconResult:
        icon_url = known_service_icon(context.url)
        if icon_url is None:
            return FaviconResult.failure("not a known service")
        return await self.download(icon_url)


class StandardLocationStrategy(_NetworkStrategy):
    """Probe the conventional icon paths of the site."""

    name = "standard_location"

    def __init__(
        self,
        client: httpx.AsyncClient,
        download_timeout: float = 15.0,
        probe_timeout: float = 10.0,
    ):
        super().__init__(client, download_timeout)
        self.probe_timeout = probe_timeout

    async def attempt(self, context: ResolutionContext) -> FaviconResult:
        origin = normalize_origin(await context.base_url())
        icon_url = await probe_standard_locations(self.client, origin, timeout=self.probe_timeout)
        if icon_url is None:
            return FaviconResult.failure("no standard icon location found")
        return await self.download(icon_url)


class HtmlLinkStrategy(_NetworkStrategy):
    """Download the <link> icons of the fetched page, best first."""

    name = "html_link"

    async def attempt(self, context: ResolutionContext) -> FaviconResult:
        page = await context.page()
        if not page.ok:
            return FaviconResult.failure(f"page unavailable: {page.short_circuit_reason}")

        try:
            candidates = find_icon_candidates(page.html, page.final_url)
        except Exception as e:
            logger.debug(f"Failed to parse HTML of {page.final_url}: {e!r}")
            return FaviconResult.failure(f"failed to parse HTML: {e}")

        for candidate in candidates:
            result = await self.download(candidate.url)
            if result.ok:
                return result

        return FaviconResult.failure("no downloadable icon link")


class RegexFallbackStrategy(_NetworkStrategy):
    """Pattern-match the raw HTML when <link> parsing found nothing usable."""

    name = "regex_fallback"

    async def attempt(self, context: ResolutionContext) -> FaviconResult:
        page = await context.page()
        if not page.ok:
            return FaviconResult.failure(f"page unavailable: {page.short_circuit_reason}")

        icon_url = find_icon_with_regex(page.html, page.final_url)
        if icon_url is None:
            return FaviconResult.failure("no icon pattern matched")
        return await self.download(icon_url)


class DefaultIconStrategy(_NetworkStrategy):
    """
    Last resort: GET /favicon.ico on the site.

    The standard-location probe already covers this path with HEAD; this GET
    still finds icons on servers that reject HEAD requests.
    """

    name = "default_icon"

    async def attempt(self, context: ResolutionContext) -> FaviconResult:
        origin = normalize_origin(await context.base_url())
        return await self.download(origin + "/favicon.ico")
