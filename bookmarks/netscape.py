"""
Markstash v1 - Netscape Bookmarks Import/Export

Reads and writes the Netscape bookmark file format understood by every
browser's bookmark importer. Files travel base64-encoded.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, Optional, Sequence

from bs4 import BeautifulSoup

from favicon_service.batch import resolve_batch
from favicon_service.resolver import FaviconResolver

logger = logging.getLogger(__name__)

EXPORT_HEADER = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<!-- This is an automatically generated file.
     It will be read and overwritten.
     DO NOT EDIT! -->
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<meta http-equiv="Content-Security-Policy"
      content="default-src 'self'; script-src 'none'; img-src data: *; object-src 'none'"></meta>
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks Menu</H1>

<DL><p>
"""

TOOLBAR_FOLDER = (
    '<DT><H3 ADD_DATE="{added}" LAST_MODIFIED="{modified}" '
    'PERSONAL_TOOLBAR_FOLDER="true">Bookmarks Toolbar</H3>\n'
    "<DL><p>\n"
)

BOOKMARK_LINE = (
    '<DT><A HREF="{url}" ADD_DATE="{added}" LAST_MODIFIED="{modified}" '
    'ICON_URI="{icon}">{title}</A>\n'
)

EXPORT_FOOTER = "</DL><p>\n</DL>\n"

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BookmarkRecord:
    """A bookmark as imported from, or exported to, a bookmarks file"""
    url: str
    title: Optional[str] = None
    favicon: str = ""
    show_text: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.url = self.url.strip()
        if self.title:
            self.title = self.title.strip() or None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "url": self.url,
            "title": self.title,
            "favicon": self.favicon,
            "show_text": self.show_text,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BookmarkRecord":
        record = cls(
            url=data.get("url") or "",
            title=data.get("title"),
            favicon=data.get("favicon") or "",
            show_text=bool(data.get("show_text", False)),
        )
        for name in ("created_at", "updated_at"):
            value = data.get(name)
            if isinstance(value, datetime):
                setattr(record, name, value)
            elif value:
                setattr(record, name, datetime.fromisoformat(value))
        return record


def sanitize_html(text: str) -> str:
    """Escape the characters that are special in HTML text and attributes."""
    return text.translate(_HTML_ESCAPES)


def _parse_timestamp(value: Optional[str]) -> datetime:
    if value:
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            pass
    return _utcnow()


def decode_bookmarks_file(data: str) -> str:
    """
    Decode a base64-encoded bookmarks file.

    Line breaks and other whitespace in the payload are ignored, so wrapped
    output of base64 and MIME tools is accepted.

    Raises:
        ValueError: If the data is not valid base64 or not UTF-8 text
    """
    try:
        raw = base64.b64decode("".join(data.split()), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Bookmarks file is not valid base64: {e}") from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Bookmarks file is not UTF-8 text: {e}") from e


def _iter_bookmarks(html_content: str) -> Iterator[BookmarkRecord]:
    soup = BeautifulSoup(html_content, "html.parser")

    for a_tag in soup.find_all("a", href=True):
        url = a_tag.get("href", "").strip()
        if not url:
            continue

        yield BookmarkRecord(
            url=url,
            title=a_tag.get_text(strip=True) or None,
            favicon=(a_tag.get("icon_uri") or "").strip(),
            created_at=_parse_timestamp(a_tag.get("add_date")),
            updated_at=_parse_timestamp(a_tag.get("last_modified") or a_tag.get("add_date")),
        )


def parse_bookmarks_html(html_content: str) -> list[BookmarkRecord]:
    """
    Parse every link of a Netscape bookmarks document, in document order.

    Folder structure is flattened; links with an empty HREF are skipped.
    """
    return list(_iter_bookmarks(html_content))


async def import_bookmarks(
    data: str,
    resolver: FaviconResolver,
    keep_existing_icons: bool = False,
    max_concurrent: Optional[int] = None,
) -> list[BookmarkRecord]:
    """
    Decode and parse a base64 bookmarks file, then resolve favicons.

    Args:
        data: Base64-encoded Netscape bookmarks file
        resolver: Favicon resolver used for every bookmark
        keep_existing_icons: Keep ICON_URI values from the file and only
            resolve bookmarks that have none; by default every icon is
            resolved afresh
        max_concurrent: Concurrency cap for favicon resolution

    Returns:
        The imported bookmarks, favicons filled in where one was found

    Raises:
        ValueError: If the file cannot be decoded
    """
    records = parse_bookmarks_html(decode_bookmarks_file(data))
    logger.info(f"Parsed {len(records)} bookmarks from import file")

    if keep_existing_icons:
        to_resolve = [record for record in records if not record.favicon]
    else:
        for record in records:
            record.favicon = ""
        to_resolve = records

    await resolve_batch(to_resolve, resolver, max_concurrent=max_concurrent)
    return records


async def attach_favicon(record: BookmarkRecord, resolver: FaviconResolver) -> BookmarkRecord:
    """
    Resolve the favicon of a single bookmark being created or updated.

    The bookmark is returned with an empty favicon if none could be found;
    icon problems never prevent saving a bookmark.
    """
    result = await resolver.resolve(record.url)
    if not result.ok:
        logger.error(f"Failed to fetch favicon for {record.url}: {result.error}")
    record.favicon = result.data_uri or ""
    return record


def export_bookmarks_html(
    records: Sequence[BookmarkRecord],
    now: Optional[datetime] = None,
) -> str:
    """
    Render bookmarks as a Netscape bookmarks document.

    All bookmarks go into a single toolbar folder. A bookmark without a
    title is labelled with its URL.
    """
    now_ts = int((now or _utcnow()).timestamp())

    parts = [EXPORT_HEADER, TOOLBAR_FOLDER.format(added=now_ts, modified=now_ts)]
    for record in records:
        title = sanitize_html(record.title or "") or sanitize_html(record.url)
        parts.append(BOOKMARK_LINE.format(
            url=sanitize_html(record.url),
            added=int(record.created_at.timestamp()),
            modified=int(record.updated_at.timestamp()),
            icon=sanitize_html(record.favicon or ""),
            title=title,
        ))
    parts.append(EXPORT_FOOTER)

    return "".join(parts)


def export_bookmarks(records: Sequence[BookmarkRecord], now: Optional[datetime] = None) -> str:
    """Render bookmarks as a Netscape document, base64-encoded for transport."""
    document = export_bookmarks_html(records, now=now)
    return base64.b64encode(document.encode("utf-8")).decode("ascii")
