"""Locator: tree walking, issue matching and plain text search.

    from pixelens.locator import walk, ContentMatcher, search
"""

from pixelens.locator.matcher import ContentMatcher, best_candidate
from pixelens.locator.search import search
from pixelens.locator.walker import CancellationToken, walk

__all__ = [
    "CancellationToken",
    "ContentMatcher",
    "best_candidate",
    "search",
    "walk",
]
