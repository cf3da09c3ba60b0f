"""
Markstash v1 - Favicon Strategy Base Class

Result types shared by the resolution cascade and the interface every
cascade step implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional


@dataclass(frozen=True)
class FaviconResult:
    """Outcome of a favicon lookup. Failures are values, never exceptions."""

    data_uri: Optional[str] = None
    error: Optional[str] = None
    source: Optional[str] = None  # strategy name, or "cache"

    @property
    def ok(self) -> bool:
        return bool(self.data_uri)

    @classmethod
    def found(cls, data_uri: str, source: Optional[str] = None) -> "FaviconResult":
        return cls(data_uri=data_uri, source=source)

    @classmethod
    def failure(cls, error: str) -> "FaviconResult":
        return cls(error=error)


@dataclass(frozen=True)
class PageFetch:
    """
    Outcome of fetching the bookmarked page.

    When ``short_circuit_reason`` is set the page could not be used (auth
    redirect, non-200 status, network error) and only base-domain discovery
    remains possible.
    """

    final_url: str
    html: Optional[str] = None
    status_code: Optional[int] = None
    short_circuit_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.short_circuit_reason is None and self.html is not None


class ResolutionContext:
    """
    Per-resolution state handed to every strategy.

    The page is fetched lazily, on the first strategy that asks for it, and
    the result is reused by every later strategy.
    """

    def __init__(
        self,
        url: str,
        origin: str,
        page_loader: Callable[[str], Awaitable[PageFetch]],
    ):
        self.url = url
        self.origin = origin
        self._page_loader = page_loader
        self._page: Optional[PageFetch] = None

    @property
    def page_fetched(self) -> bool:
        return self._page is not None

    async def page(self) -> PageFetch:
        if self._page is None:
            self._page = await self._page_loader(self.url)
        return self._page

    async def base_url(self) -> str:
        """URL icons are discovered against: the final page URL if usable."""
        page = await self.page()
        return page.final_url if page.ok else self.url


class BaseStrategy(ABC):
    """
    Abstract base class for cascade steps.

    Each strategy must implement:
    - attempt(context): Return a FaviconResult; a failure lets the cascade
      move on to the next strategy
    """

    name: str = "base"

    @abstractmethod
    async def attempt(self, context: ResolutionContext) -> FaviconResult:
        """
        Try to produce a favicon for the context's URL.

        Args:
            context: Shared per-resolution state

        Returns:
            FaviconResult, successful or not
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
