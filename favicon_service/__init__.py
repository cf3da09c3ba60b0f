"""
Markstash v1 - Favicon Service

Resolves, encodes and caches site icons for bookmarks.
"""

__version__ = "1.0.0"
