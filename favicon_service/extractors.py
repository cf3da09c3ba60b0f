"""
Markstash v1 - Icon Link Extraction

Finds icon URLs in a fetched page:
- find_icon_candidates: ranked <link> icons from the parsed document
- find_icon_with_regex: pattern-based fallback over the raw HTML text
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Lower number = preferred
REL_PRIORITIES = MappingProxyType({
    "icon": 1,
    "shortcut icon": 2,
    "apple-touch-icon": 3,
    "apple-touch-icon-precomposed": 4,
    "fluid-icon": 5,
    "mask-icon": 6,
    "alternate icon": 7,
})

BOOSTED_SIZES = ("32x32", "64x64", "128x128")

ICON_PATTERNS = tuple(re.compile(pattern, re.IGNORECASE) for pattern in (
    # rel="icon" / rel="shortcut icon"
    r"""<link[^>]*rel=["'](?:shortcut\s+)?icon["'][^>]*href=["']([^"']+)["']""",
    r"""<link[^>]*href=["']([^"']+)["'][^>]*rel=["'](?:shortcut\s+)?icon["']""",
    # apple-touch-icon and its variants
    r"""<link[^>]*rel=["']apple-touch-icon[^"']*["'][^>]*href=["']([^"']+)["']""",
    r"""<link[^>]*href=["']([^"']+)["'][^>]*rel=["']apple-touch-icon[^"']*["']""",
    # Open Graph image
    r"""<meta[^>]*property=["']og:image["'][^>]*content=["']([^"']+)["']""",
    r"""<meta[^>]*content=["']([^"']+)["'][^>]*property=["']og:image["']""",
    # Twitter card image
    r"""<meta[^>]*name=["']twitter:image["'][^>]*content=["']([^"']+)["']""",
    r"""<meta[^>]*content=["']([^"']+)["'][^>]*name=["']twitter:image["']""",
))


@dataclass(frozen=True)
class IconCandidate:
    """An icon URL discovered in a page, with its preference rank"""
    url: str
    priority: int


def _attr_text(value) -> str:
    # bs4 returns multi-valued attributes such as rel as lists
    if isinstance(value, (list, tuple)):
        value = " ".join(value)
    return (value or "").strip()


def find_icon_candidates(html_content: str, base_url: str) -> list[IconCandidate]:
    """
    Collect icon <link> elements, best first.

    Args:
        html_content: Raw HTML of the page
        base_url: Final (post-redirect) page URL used to resolve relative hrefs

    Returns:
        Candidates sorted by priority; ties keep document order
    """
    soup = BeautifulSoup(html_content, "html.parser")

    candidates = []
    for link in soup.find_all("link"):
        rel = _attr_text(link.get("rel")).lower()
        href = _attr_text(link.get("href"))
        sizes = _attr_text(link.get("sizes")).lower()

        priority = REL_PRIORITIES.get(rel)
        if priority is None or not href:
            continue

        if sizes and any(size in sizes for size in BOOSTED_SIZES):
            priority -= 1

        try:
            icon_url = urljoin(base_url, href)
        except ValueError as e:
            logger.debug(f"Skipping malformed icon href {href!r}: {e}")
            continue

        candidates.append(IconCandidate(url=icon_url, priority=priority))

    return sorted(candidates, key=lambda candidate: candidate.priority)


def find_icon_with_regex(html_content: str, base_url: str) -> Optional[str]:
    """
    Search the raw HTML for an icon URL with a fixed list of patterns.

    The first pattern whose match resolves to a URL decides; a match that
    is not a valid URL moves on to the next pattern.

    Returns:
        Absolute icon URL, or None if no pattern matched
    """
    for pattern in ICON_PATTERNS:
        match = pattern.search(html_content)
        if not match:
            continue
        try:
            icon_url = urljoin(base_url, match.group(1).strip())
        except ValueError as e:
            logger.debug(f"Skipping malformed icon URL {match.group(1)!r}: {e}")
            continue
        logger.debug(f"Regex fallback matched {icon_url}")
        return icon_url
    return None
