"""
Markstash v1 - Favicon Cache

Stores resolved favicons (as data URIs) keyed by origin, with expiry.

Two backends are provided:
- RedisFaviconCache: shared cache used by deployed services
- MemoryFaviconCache: in-process cache used when no Redis URL is configured

A miss is not an error. Backend failures raise CacheError, which callers are
expected to log and otherwise ignore.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Callable, Optional

import redis.asyncio as redis

from config import get_config

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=7)


class CacheError(Exception):
    """Raised when the cache backend cannot be reached."""


class FaviconCache(ABC):
    """
    Abstract favicon cache.

    Implementations must be safe to share between concurrent resolutions.
    """

    @abstractmethod
    async def get(self, origin: str) -> Optional[str]:
        """
        Look up a cached favicon.

        Args:
            origin: Origin key (``scheme://host``)

        Returns:
            The cached data URI, or None on a miss

        Raises:
            CacheError: If the backend is unavailable
        """
        pass

    @abstractmethod
    async def put(self, origin: str, data_uri: str, ttl: timedelta = DEFAULT_TTL) -> None:
        """
        Store a favicon for the origin, replacing any previous entry.

        Raises:
            CacheError: If the backend is unavailable
        """
        pass

    async def ping(self) -> bool:
        """Return True if the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        pass


class MemoryFaviconCache(FaviconCache):
    """In-process cache with per-entry expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, origin: str) -> Optional[str]:
        entry = self._entries.get(origin)
        if entry is None:
            return None
        data_uri, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[origin]
            return None
        return data_uri

    async def put(self, origin: str, data_uri: str, ttl: timedelta = DEFAULT_TTL) -> None:
        self._entries[origin] = (data_uri, self._clock() + ttl.total_seconds())

    def __len__(self) -> int:
        return len(self._entries)


class RedisFaviconCache(FaviconCache):
    """Redis-backed cache; entries expire through Redis key TTLs."""

    def __init__(self, client: redis.Redis, key_prefix: str = "favicon_base64:"):
        self._client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "favicon_base64:") -> "RedisFaviconCache":
        return cls(redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    def key(self, origin: str) -> str:
        return self.key_prefix + origin

    async def get(self, origin: str) -> Optional[str]:
        try:
            value = await self._client.get(self.key(origin))
        except redis.RedisError as e:
            logger.error(f"Failed to read favicon for {origin} from cache: {e}")
            raise CacheError(str(e)) from e

        if not value:
            logger.debug(f"Favicon for {origin} not found in cache")
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        logger.debug(f"Favicon for {origin} retrieved from cache")
        return value

    async def put(self, origin: str, data_uri: str, ttl: timedelta = DEFAULT_TTL) -> None:
        try:
            await self._client.set(self.key(origin), data_uri, ex=ttl)
        except redis.RedisError as e:
            logger.error(f"Failed to store favicon for {origin} in cache: {e}")
            raise CacheError(str(e)) from e
        logger.debug(f"Favicon for {origin} stored in cache")

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()


def create_cache() -> FaviconCache:
    """Build the cache backend selected by configuration."""
    settings = get_config().cache
    if settings.redis_url:
        logger.info("Using Redis favicon cache")
        return RedisFaviconCache.from_url(settings.redis_url, key_prefix=settings.key_prefix)
    logger.info("REDIS_URL not set, using in-memory favicon cache")
    return MemoryFaviconCache()
