"""
Markstash v1 - Favicon Resolver

Runs the resolution cascade for a single URL:

    cache -> known service -> standard locations -> <link> icons
          -> regex fallback -> /favicon.ico -> not found

A successful result is stored in the cache under the URL's origin. Failed
resolutions are never cached.
"""

import asyncio
import logging
from typing import Optional

import httpx

from config import get_config
from .base import BaseStrategy, FaviconResult, PageFetch, ResolutionContext
from .cache import CacheError, FaviconCache
from .fetcher import fetch_page
from .normalizer import ensure_scheme, normalize_origin
from .strategies import (
    DefaultIconStrategy,
    HtmlLinkStrategy,
    KnownServiceStrategy,
    RegexFallbackStrategy,
    StandardLocationStrategy,
)

logger = logging.getLogger(__name__)


class FaviconResolver:
    """
    Resolves bookmark URLs to favicon data URIs.

    Owns one HTTP client shared by every request of every resolution. Use as
    an async context manager, or call close() when done.
    """

    def __init__(
        self,
        cache: Optional[FaviconCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        page_timeout: Optional[float] = None,
        probe_timeout: Optional[float] = None,
        download_timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        deadline: Optional[float] = None,
        cache_ttl=None,
    ):
        settings = get_config()
        self.cache = cache
        self.cache_ttl = cache_ttl or settings.cache.ttl
        self.page_timeout = page_timeout or settings.favicon.page_timeout
        self.probe_timeout = probe_timeout or settings.favicon.probe_timeout
        self.download_timeout = download_timeout or settings.favicon.download_timeout
        self.max_redirects = max_redirects if max_redirects is not None else settings.favicon.max_redirects
        self.deadline = deadline if deadline is not None else settings.favicon.resolve_deadline
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._strategies: Optional[list[BaseStrategy]] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._transport)
        return self._client

    @property
    def strategies(self) -> list[BaseStrategy]:
        """Cascade steps tried after the cache, in order."""
        if self._strategies is None:
            self._strategies = self.build_strategies()
        return self._strategies

    def build_strategies(self) -> list[BaseStrategy]:
        client = self.client
        return [
            KnownServiceStrategy(client, self.download_timeout),
            StandardLocationStrategy(client, self.download_timeout, self.probe_timeout),
            HtmlLinkStrategy(client, self.download_timeout),
            RegexFallbackStrategy(client, self.download_timeout),
            DefaultIconStrategy(client, self.download_timeout),
        ]

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._strategies = None

    async def __aenter__(self) -> "FaviconResolver":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _load_page(self, url: str) -> PageFetch:
        return await fetch_page(
            self.client,
            url,
            timeout=self.page_timeout,
            max_redirects=self.max_redirects,
        )

    async def _cache_get(self, origin: str) -> Optional[str]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(origin)
        except CacheError as e:
            logger.warning(f"Favicon cache unavailable, resolving {origin} live: {e}")
            return None

    async def _cache_put(self, origin: str, data_uri: str) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.put(origin, data_uri, self.cache_ttl)
        except CacheError as e:
            logger.warning(f"Failed to cache favicon for {origin}: {e}")

    async def _run_cascade(self, url: str, origin: str) -> FaviconResult:
        cached = await self._cache_get(origin)
        if cached:
            logger.debug(f"Cache hit for {origin}")
            return FaviconResult.found(cached, source="cache")

        context = ResolutionContext(ensure_scheme(url), origin, self._load_page)
        errors = []
        for strategy in self.strategies:
            result = await strategy.attempt(context)
            if result.ok:
                logger.debug(f"Resolved favicon for {origin} via {strategy.name}")
                await self._cache_put(origin, result.data_uri)
                return result
            logger.debug(f"{strategy.name} failed for {url}: {result.error}")
            errors.append(f"{strategy.name}: {result.error}")

        logger.info(f"No favicon found for {url}")
        return FaviconResult.failure(
            "failed to find or download any valid favicon (" + "; ".join(errors) + ")"
        )

    async def resolve(self, url: str) -> FaviconResult:
        """
        Resolve the favicon for a URL.

        Never raises for resolution problems: every failure, including an
        exhausted cascade, comes back as an unsuccessful FaviconResult.
        Cancellation of the calling task is propagated.

        Args:
            url: Bookmark URL, with or without a scheme

        Returns:
            FaviconResult with the data URI on success
        """
        url = (url or "").strip()
        if not url:
            return FaviconResult.failure("empty URL")

        origin = normalize_origin(url)
        try:
            if self.deadline:
                return await asyncio.wait_for(self._run_cascade(url, origin), self.deadline)
            return await self._run_cascade(url, origin)
        except asyncio.TimeoutError:
            logger.info(f"Favicon resolution for {url} exceeded {self.deadline}s deadline")
            return FaviconResult.failure("deadline exceeded")
        except Exception as e:
            logger.exception(f"Unexpected error resolving favicon for {url}")
            return FaviconResult.failure(f"internal error: {e}")


async def resolve_favicon(
    url: str,
    cache: Optional[FaviconCache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FaviconResult:
    """
    Resolve one favicon with a short-lived resolver.

    Convenience wrapper; long-running callers should keep a FaviconResolver.
    """
    async with FaviconResolver(cache=cache, transport=transport) as resolver:
        return await resolver.resolve(url)
