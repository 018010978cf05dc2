"""User-driven "find in project" search, independent of issue matching."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from pixelens.core.config import PixeLensConfig, load_config
from pixelens.core.models import SearchResult
from pixelens.locator.matcher import ContentMatcher
from pixelens.locator.rules import PlainTextRule
from pixelens.locator.walker import CancellationToken, walk


def search(
    root: Path,
    term: str,
    config: PixeLensConfig | None = None,
    cancel: CancellationToken | None = None,
) -> list[SearchResult]:
    """Case-insensitive line search across every eligible file under *root*.

    One result per matching line. ``line_content`` is the stripped line cut
    to ``search.preview_length`` characters.
    """
    if not term:
        return []

    root = Path(root)
    config = config or load_config(root)
    files = walk(root, config.allowed_extensions, config.excluded_dir_names, cancel)
    matcher = ContentMatcher(max_workers=config.search.max_workers)
    limit = config.search.preview_length

    return [
        replace(result, line_content=result.line_content.strip()[:limit])
        for result in matcher.scan(files, [PlainTextRule(term)])
    ]
