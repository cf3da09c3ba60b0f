"""
Markstash v1 - Bookmarks Module

Netscape bookmark file import/export with favicon resolution.
"""

from .netscape import (
    BookmarkRecord,
    attach_favicon,
    export_bookmarks,
    export_bookmarks_html,
    import_bookmarks,
    parse_bookmarks_html,
)

__all__ = [
    "BookmarkRecord",
    "attach_favicon",
    "export_bookmarks",
    "export_bookmarks_html",
    "import_bookmarks",
    "parse_bookmarks_html",
]
