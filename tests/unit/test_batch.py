"""
Markstash v1 - Batch Resolution Tests
"""

import asyncio

import pytest

from bookmarks.netscape import BookmarkRecord
from favicon_service.base import FaviconResult
from favicon_service.batch import resolve_batch, resolve_many


def _records(urls):
    return [BookmarkRecord(url=url, title=url) for url in urls]


class RaisingResolver:
    """Resolver double that raises for one URL."""

    def __init__(self, bad_url):
        self.bad_url = bad_url

    async def resolve(self, url):
        if url == self.bad_url:
            raise RuntimeError("resolver bug")
        return FaviconResult.found("data:image/png;base64,AAAA", source="cache")


class TestResolveBatch:
    """Tests for concurrent favicon resolution of many bookmarks."""

    @pytest.mark.asyncio
    async def test_concurrency_is_capped(self, fake_web, resolver):
        """Test that 50 bookmarks never have more than 10 resolutions in flight."""
        urls = [f"https://site{n}.example/" for n in range(50)]
        for url in urls:
            fake_web.icon(url + "favicon.ico")
        fake_web.delay = 0.01
        records = _records(urls)

        resolved = await resolve_batch(records, resolver, max_concurrent=10)

        assert resolved == 50
        assert all(record.favicon.startswith("data:image/png;base64,") for record in records)
        assert 1 < fake_web.max_in_flight <= 10

    @pytest.mark.asyncio
    async def test_partial_failure(self, fake_web, resolver):
        """Test that one unreachable site does not affect the others."""
        fake_web.icon("https://a.example/favicon.ico")
        fake_web.icon("https://c.example/favicon.ico")
        fake_web.fail_host("b.example")
        records = _records(["https://a.example/", "https://b.example/", "https://c.example/"])

        resolved = await resolve_batch(records, resolver)

        assert resolved == 2
        assert [bool(record.favicon) for record in records] == [True, False, True]

    @pytest.mark.asyncio
    async def test_empty_urls_are_skipped(self, fake_web, resolver):
        records = _records(["", "   "])
        assert await resolve_batch(records, resolver) == 0
        assert fake_web.requests == []

    @pytest.mark.asyncio
    async def test_previous_favicon_is_cleared_on_failure(self, fake_web, resolver):
        records = _records(["https://gone.example/"])
        records[0].favicon = "data:image/png;base64,OLD"

        await resolve_batch(records, resolver)

        assert records[0].favicon == ""

    @pytest.mark.asyncio
    async def test_raising_resolution_leaves_empty_favicon(self):
        records = _records(["https://a.example/", "https://bad.example/"])

        resolved = await resolve_batch(records, RaisingResolver("https://bad.example/"))

        assert resolved == 1
        assert records[0].favicon
        assert records[1].favicon == ""

    @pytest.mark.asyncio
    async def test_cancellation_stops_in_flight_work(self, fake_web, resolver):
        """Test that cancelling the batch cancels and awaits every resolution."""
        fake_web.delay = 1.0
        records = _records([f"https://slow{n}.example/" for n in range(20)])

        task = asyncio.create_task(resolve_batch(records, resolver, max_concurrent=5))
        await asyncio.sleep(0.05)
        assert fake_web.in_flight == 5

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert fake_web.in_flight == 0


class TestResolveMany:
    """Tests for bounded resolution of plain URL lists."""

    @pytest.mark.asyncio
    async def test_results_in_input_order_and_capped(self, fake_web, resolver):
        urls = [f"https://site{n}.example/" for n in range(25)]
        for url in urls[::2]:
            fake_web.icon(url + "favicon.ico")
        fake_web.delay = 0.01

        results = await resolve_many(urls, resolver, max_concurrent=4)

        assert [result.ok for result in results] == [n % 2 == 0 for n in range(25)]
        assert fake_web.max_in_flight <= 4

    @pytest.mark.asyncio
    async def test_raising_resolution_becomes_failure(self):
        results = await resolve_many(
            ["https://a.example/", "https://bad.example/"],
            RaisingResolver("https://bad.example/"),
        )

        assert results[0].ok
        assert results[1].error == "internal error: resolver bug"

    @pytest.mark.asyncio
    async def test_empty_input(self, resolver):
        assert await resolve_many([], resolver) == []
