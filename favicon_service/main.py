"""
Markstash v1 - Favicon Service

FastAPI service exposing favicon resolution and bookmark file conversion.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from bookmarks.netscape import BookmarkRecord, export_bookmarks, import_bookmarks
from config import LOG_FORMAT, get_config
from . import __version__
from .batch import resolve_batch
from .cache import FaviconCache, create_cache
from .models import (
    BatchResolveItem,
    BatchResolveRequest,
    Bookmark,
    ErrorResponse,
    ExportRequest,
    ExportResponse,
    HealthResponse,
    ImportRequest,
    ImportResponse,
    ResolveRequest,
    ResolveResponse,
)
from .normalizer import normalize_origin
from .resolver import FaviconResolver

# Configure logging
logging.basicConfig(
    level=get_config().app.log_level.upper(),
    format=LOG_FORMAT,
)
logger = logging.getLogger(__name__)

# Global state
_cache: Optional[FaviconCache] = None
_resolver: Optional[FaviconResolver] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global _cache, _resolver

    logger.info("Favicon service starting...")
    _cache = create_cache()
    _resolver = FaviconResolver(cache=_cache)

    yield

    await _resolver.close()
    await _cache.close()
    _resolver = None
    _cache = None
    logger.info("Favicon service shutting down")


app = FastAPI(
    title="Markstash Favicon Service",
    description="Resolves and caches site icons for bookmarks",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_resolver() -> FaviconResolver:
    """Get the shared resolver created at startup."""
    if _resolver is None:
        raise HTTPException(
            status_code=500,
            detail=ErrorResponse(
                error="Service not initialized",
                detail="Favicon resolver not configured",
            ).model_dump(),
        )
    return _resolver


def get_cache() -> Optional[FaviconCache]:
    """Get the shared favicon cache, if the service has started."""
    return _cache


def _to_record(bookmark: Bookmark) -> BookmarkRecord:
    record = BookmarkRecord(
        url=bookmark.url,
        title=bookmark.title,
        favicon=bookmark.favicon,
        show_text=bookmark.show_text,
    )
    if bookmark.created_at:
        record.created_at = bookmark.created_at
    if bookmark.updated_at:
        record.updated_at = bookmark.updated_at
    return record


def _to_bookmark(record: BookmarkRecord) -> Bookmark:
    return Bookmark(
        url=record.url,
        title=record.title,
        favicon=record.favicon,
        show_text=record.show_text,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(cache: Optional[FaviconCache] = Depends(get_cache)):
    """Check service health and cache connectivity."""
    cache_ok = cache is not None and await cache.ping()

    return HealthResponse(
        status="healthy" if cache_ok else "degraded",
        version=__version__,
        cache="connected" if cache_ok else "disconnected",
    )


@app.post(
    "/resolve",
    response_model=ResolveResponse,
    responses={
        404: {"model": ErrorResponse, "description": "No favicon found"},
    },
    tags=["Favicons"],
)
async def resolve(request: ResolveRequest, resolver: FaviconResolver = Depends(get_resolver)):
    """
    Resolve the favicon for a URL.

    Tries, in order: the cache, a table of well-known sites, the standard
    icon paths, the page's <link> icons, a pattern search of the page, and
    finally /favicon.ico.
    """
    logger.info(f"Resolving favicon for: {request.url}")

    result = await resolver.resolve(request.url)
    if not result.ok:
        raise HTTPException(
            status_code=404,
            detail=ErrorResponse(
                error="Favicon not found",
                detail=result.error,
                url=request.url,
            ).model_dump(),
        )

    return ResolveResponse(
        url=request.url,
        origin=normalize_origin(request.url),
        favicon=result.data_uri,
        source=result.source,
    )


@app.post("/resolve_batch", response_model=list[BatchResolveItem], tags=["Favicons"])
async def resolve_many(request: BatchResolveRequest, resolver: FaviconResolver = Depends(get_resolver)):
    """
    Resolve favicons for many URLs concurrently.

    Results are returned in request order; a URL without a favicon gets an
    empty string.
    """
    items = [BatchResolveItem(url=url.strip()) for url in request.urls]
    await resolve_batch(items, resolver)
    return items


@app.post(
    "/bookmarks/import",
    response_model=ImportResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Undecodable bookmarks file"},
    },
    tags=["Bookmarks"],
)
async def import_file(request: ImportRequest, resolver: FaviconResolver = Depends(get_resolver)):
    """
    Parse a base64-encoded Netscape bookmarks file and resolve favicons.
    """
    try:
        records = await import_bookmarks(
            request.file,
            resolver,
            keep_existing_icons=request.keep_existing_icons,
        )
    except ValueError as e:
        logger.warning(f"Rejected bookmarks import: {e}")
        raise HTTPException(
            status_code=400,
            detail=ErrorResponse(error="Invalid bookmarks file", detail=str(e)).model_dump(),
        )

    logger.info(f"Imported {len(records)} bookmarks")
    return ImportResponse(bookmarks=[_to_bookmark(record) for record in records])


@app.post("/bookmarks/export", response_model=ExportResponse, tags=["Bookmarks"])
async def export_file(request: ExportRequest):
    """
    Render bookmarks as a base64-encoded Netscape bookmarks file.
    """
    records = [_to_record(bookmark) for bookmark in request.bookmarks]
    return ExportResponse(file=export_bookmarks(records))


# Run with: uvicorn favicon_service.main:app --host 0.0.0.0 --port 8003
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8003)
