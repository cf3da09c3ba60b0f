"""
Markstash v1 - Icon Link Extraction Tests
"""

from favicon_service.extractors import IconCandidate, find_icon_candidates, find_icon_with_regex

BASE = "https://example.com/blog/post"


def _urls(candidates):
    return [candidate.url for candidate in candidates]


class TestFindIconCandidates:
    """Tests for ranked <link> icon extraction."""

    def test_sorted_by_rel_priority(self):
        """Test that candidates are ordered icon, apple-touch-icon, alternate icon."""
        html = """
        <html><head>
          <link rel="alternate icon" href="/alt.ico">
          <link rel="icon" href="/icon.png">
          <link rel="apple-touch-icon" href="/touch.png">
        </head></html>
        """
        assert _urls(find_icon_candidates(html, BASE)) == [
            "https://example.com/icon.png",
            "https://example.com/touch.png",
            "https://example.com/alt.ico",
        ]

    def test_large_sizes_are_boosted(self):
        """Test that sizes=32x32 beats the same rel without sizes."""
        html = """
        <link rel="icon" href="/plain.png">
        <link rel="icon" sizes="32x32" href="/32.png">
        """
        candidates = find_icon_candidates(html, BASE)
        assert candidates == [
            IconCandidate(url="https://example.com/32.png", priority=0),
            IconCandidate(url="https://example.com/plain.png", priority=1),
        ]

    def test_small_sizes_are_not_boosted(self):
        html = '<link rel="shortcut icon" sizes="16x16" href="/16.ico">'
        assert find_icon_candidates(html, BASE)[0].priority == 2

    def test_boost_can_tie_with_better_rel(self):
        """Test that a boosted rel ties with the next better rel and keeps document order."""
        html = """
        <link rel="shortcut icon" sizes="64x64" href="/boosted.png">
        <link rel="icon" href="/icon.png">
        """
        assert _urls(find_icon_candidates(html, BASE)) == [
            "https://example.com/boosted.png",
            "https://example.com/icon.png",
        ]

    def test_equal_priorities_keep_document_order(self):
        html = "".join(f'<link rel="icon" href="/{n}.png">' for n in range(6))
        assert _urls(find_icon_candidates(html, BASE)) == [
            f"https://example.com/{n}.png" for n in range(6)
        ]

    def test_rel_is_case_insensitive_and_trimmed(self):
        html = '<link rel="  Shortcut Icon " href=" /favicon.ico ">'
        assert find_icon_candidates(html, BASE) == [
            IconCandidate(url="https://example.com/favicon.ico", priority=2)
        ]

    def test_unknown_rels_and_empty_hrefs_are_ignored(self):
        html = """
        <link rel="stylesheet" href="/style.css">
        <link rel="canonical" href="/post">
        <link rel="icon" href="">
        <link rel="icon">
        """
        assert find_icon_candidates(html, BASE) == []

    def test_hrefs_resolved_against_page_url(self):
        """Test relative, protocol-relative and absolute hrefs."""
        html = """
        <link rel="icon" href="img/a.png">
        <link rel="icon" href="//cdn.example.net/b.png">
        <link rel="icon" href="https://static.example.org/c.png">
        """
        assert _urls(find_icon_candidates(html, BASE)) == [
            "https://example.com/blog/img/a.png",
            "https://cdn.example.net/b.png",
            "https://static.example.org/c.png",
        ]

    def test_links_outside_head_are_found(self):
        html = '<body><div><link rel="mask-icon" href="/mask.svg"></div></body>'
        assert find_icon_candidates(html, BASE)[0].priority == 6


class TestFindIconWithRegex:
    """Tests for the pattern-based fallback."""

    def test_rel_before_href(self):
        html = "<LINK REL='shortcut icon' HREF='/fav.ico'>"
        assert find_icon_with_regex(html, BASE) == "https://example.com/fav.ico"

    def test_href_before_rel(self):
        html = '<link type="image/png" href="/fav.png" rel="icon">'
        assert find_icon_with_regex(html, BASE) == "https://example.com/fav.png"

    def test_icon_preferred_over_og_image_regardless_of_position(self):
        """Test that pattern order, not document order, decides."""
        html = """
        <meta property="og:image" content="https://example.com/og.jpg">
        <link rel="apple-touch-icon-precomposed" href="/touch.png">
        <link rel="icon" href="/icon.png">
        """
        assert find_icon_with_regex(html, BASE) == "https://example.com/icon.png"

    def test_apple_touch_icon_before_og_image(self):
        html = """
        <meta property="og:image" content="/og.jpg">
        <link rel="apple-touch-icon" href="/touch.png">
        """
        assert find_icon_with_regex(html, BASE) == "https://example.com/touch.png"

    def test_og_image_either_attribute_order(self):
        html = '<meta content="/og.jpg" property="og:image">'
        assert find_icon_with_regex(html, BASE) == "https://example.com/og.jpg"

    def test_twitter_image_last(self):
        html = '<meta name="twitter:image" content="https://cdn.example.com/card.png">'
        assert find_icon_with_regex(html, BASE) == "https://cdn.example.com/card.png"

    def test_no_match(self):
        assert find_icon_with_regex("<html><head><title>x</title></head></html>", BASE) is None


class TestMalformedUrls:
    """Tests for hrefs that cannot be parsed as URLs."""

    def test_bad_link_is_skipped_and_others_kept(self):
        html = """
        <link rel="icon" href="http://[bad/x.png">
        <link rel="apple-touch-icon" href="/good.png">
        """
        assert find_icon_candidates(html, BASE) == [
            IconCandidate(url="https://example.com/good.png", priority=3)
        ]

    def test_regex_moves_on_to_next_pattern(self):
        html = """
        <link rel="icon" href="http://[bad/x.png">
        <meta property="og:image" content="/og.png">
        """
        assert find_icon_with_regex(html, BASE) == "https://example.com/og.png"

    def test_regex_only_bad_match(self):
        assert find_icon_with_regex('<link rel="icon" href="http://[bad/">', BASE) is None
