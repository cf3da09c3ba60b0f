"""
Markstash v1 - Batch Favicon Resolution

Resolves favicons for many URLs concurrently, used by bulk import and the
CLI. Records are any objects with ``url`` and ``favicon`` attributes.
"""

import asyncio
import logging
from typing import Optional, Sequence

from config import get_config
from .base import FaviconResult
from .resolver import FaviconResolver

logger = logging.getLogger(__name__)


async def resolve_many(
    urls: Sequence[str],
    resolver: FaviconResolver,
    max_concurrent: Optional[int] = None,
) -> list[FaviconResult]:
    """
    Resolve many URLs with at most ``max_concurrent`` resolutions in flight.

    Results come back in input order. A resolution that raises becomes a
    failed result without affecting the others. If the caller is cancelled,
    in-flight resolutions are cancelled and awaited before the cancellation
    propagates.

    Args:
        urls: URLs to resolve
        resolver: Shared resolver (and its cache)
        max_concurrent: Concurrency cap, defaults to FAVICON_MAX_CONCURRENT

    Returns:
        One FaviconResult per URL
    """
    if not urls:
        return []

    limit = max_concurrent or get_config().favicon.max_concurrent
    semaphore = asyncio.Semaphore(limit)

    async def resolve_one(url: str) -> FaviconResult:
        async with semaphore:
            return await resolver.resolve(url)

    logger.info(f"Resolving favicons for {len(urls)} URLs (max {limit} concurrent)")
    tasks = [asyncio.ensure_future(resolve_one(url)) for url in urls]
    try:
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    results = []
    for url, outcome in zip(urls, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(f"Favicon task for {url} failed: {outcome!r}")
            outcome = FaviconResult.failure(f"internal error: {outcome}")
        results.append(outcome)
    return results


async def resolve_batch(
    records: Sequence,
    resolver: FaviconResolver,
    max_concurrent: Optional[int] = None,
) -> int:
    """
    Fill in the ``favicon`` field of every record in place.

    Records with an empty URL are skipped. A record whose resolution fails
    gets an empty favicon. Concurrency and cancellation follow resolve_many.

    Returns:
        Number of records that received a favicon
    """
    pending = [record for record in records if record.url]
    if not pending:
        return 0

    results = await resolve_many([record.url for record in pending], resolver, max_concurrent)

    resolved = 0
    for record, result in zip(pending, results):
        # Each result only ever lands on its own record
        record.favicon = result.data_uri or ""
        if result.ok:
            resolved += 1
        else:
            logger.debug(f"No favicon for {record.url}: {result.error}")

    logger.info(f"Resolved {resolved}/{len(pending)} favicons")
    return resolved
