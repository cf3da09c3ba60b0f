"""
Markstash v1 - Test Configuration and Fixtures

Shared fixtures for unit and e2e tests. Network access is replaced by a
FakeWeb served through httpx.MockTransport.
"""

import asyncio
import base64
from typing import Callable, Optional, Union

import httpx
import pytest
import pytest_asyncio

from favicon_service.cache import MemoryFaviconCache
from favicon_service.resolver import FaviconResolver

# Smallest valid PNG: 1x1 transparent pixel
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
ICO_BYTES = b"\x00\x00\x01\x00\x01\x00\x10\x10"

Route = Union[Callable[[httpx.Request], httpx.Response], Exception]


def _route_key(method: str, url: Union[str, httpx.URL]) -> tuple[str, str, str, str]:
    url = httpx.URL(url)
    return (method.upper(), url.scheme, url.host, url.path or "/")


class FakeWeb:
    """
    Programmable fake of the web for the favicon engine.

    Routes are matched on method, scheme, host and path (query ignored).
    Unknown routes answer 404. Every request is recorded, and the number of
    requests being served at the same time is tracked.
    """

    def __init__(self):
        self.routes: dict[tuple, Route] = {}
        self.failing_hosts: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.delay: float = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    # Route registration

    def add(self, method: str, url: str, route: Route) -> None:
        self.routes[_route_key(method, url)] = route

    def respond(self, method: str, url: str, status: int = 200, content: bytes = b"", headers=None) -> None:
        """Register a route answering with a fresh response on every request."""
        self.add(method, url, lambda request: httpx.Response(
            status, content=content, headers=dict(headers or {})
        ))

    def page(self, url: str, html: str, status: int = 200) -> None:
        self.respond("GET", url, status, html.encode("utf-8"), {"Content-Type": "text/html; charset=utf-8"})

    def redirect(self, url: str, location: str, status: int = 302) -> None:
        self.respond("GET", url, status, headers={"Location": location})

    def icon(
        self,
        url: str,
        content: bytes = PNG_1X1,
        content_type: Optional[str] = "image/png",
        head: bool = True,
    ) -> None:
        headers = {"Content-Type": content_type} if content_type else {}
        self.respond("GET", url, 200, content, headers)
        if head:
            self.respond("HEAD", url, 200, headers=headers)

    def fail_host(self, host: str) -> None:
        """Make every request to the host fail with a connection error."""
        self.failing_hosts.add(host)

    # Inspection

    def calls(self, method: Optional[str] = None, host: Optional[str] = None) -> list[str]:
        return [
            str(request.url)
            for request in self.requests
            if (method is None or request.method == method)
            and (host is None or request.url.host == host)
        ]

    def was_requested(self, method: str, url: str) -> bool:
        key = _route_key(method, url)
        return any(_route_key(r.method, r.url) == key for r in self.requests)

    # Transport

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)

            if request.url.host in self.failing_hosts:
                raise httpx.ConnectError("connection refused", request=request)

            route = self.routes.get(_route_key(request.method, request.url))
            if route is None:
                return httpx.Response(404)
            if isinstance(route, Exception):
                raise route
            return route(request)
        finally:
            self.in_flight -= 1

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def png_data_uri(content: bytes = PNG_1X1, content_type: str = "image/png") -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


@pytest.fixture
def fake_web() -> FakeWeb:
    """Empty fake web; tests register the routes they need."""
    return FakeWeb()


@pytest.fixture
def memory_cache() -> MemoryFaviconCache:
    return MemoryFaviconCache()


@pytest_asyncio.fixture
async def resolver(fake_web: FakeWeb, memory_cache: MemoryFaviconCache):
    """Resolver wired to the fake web and an in-memory cache."""
    resolver = FaviconResolver(cache=memory_cache, transport=fake_web.transport)
    yield resolver
    await resolver.close()
