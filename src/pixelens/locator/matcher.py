"""Content matcher. Scores source lines against an issue's selector.

Files are read in parallel (bounded), but results are gathered in walk
order and stable-sorted by tier, so the best candidate never depends on
thread scheduling.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pixelens.core.models import Issue, SearchResult
from pixelens.locator.rules import MatchRule, rules_for_issue, rules_for_term

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def read_lines(path: Path) -> list[str] | None:
    """Return the file's lines without terminators, or None if unreadable."""
    try:
        with open(path, encoding="utf-8", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable file %s: %s", path, e)
        return None
    return [line.rstrip("\r") for line in content.split("\n")]


def match_lines(path: Path, lines: Sequence[str], rules: Sequence[MatchRule]) -> list[SearchResult]:
    """At most one result per line, carrying the best tier that matched it."""
    results: list[SearchResult] = []
    for index, line in enumerate(lines):
        best = None
        for rule in rules:
            if rule.matches(line):
                candidate = SearchResult(
                    file_path=path,
                    line_number=index + 1,
                    line_content=line,
                    match_kind=rule.kind,
                )
                if best is None or candidate.tier < best.tier:
                    best = candidate
        if best is not None:
            results.append(best)
    return results


def rank(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Order by tier; sorted() is stable so discovery order breaks ties."""
    return sorted(results, key=lambda r: r.tier)


def best_candidate(candidates: Sequence[SearchResult]) -> SearchResult | None:
    return candidates[0] if candidates else None


class ContentMatcher:
    """Finds and ranks lines that likely hold an issue's element."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        self.max_workers = max(1, max_workers)

    def find_candidates(self, files: Iterable[Path], query: Issue | str) -> list[SearchResult]:
        """Ranked candidates for an issue, or for a raw search term."""
        if isinstance(query, Issue):
            rules = rules_for_issue(query)
        else:
            rules = rules_for_term(query)
        return rank(self.scan(files, rules))

    def scan(self, files: Iterable[Path], rules: Sequence[MatchRule]) -> list[SearchResult]:
        """Unranked results in file order, then line order."""
        if not rules:
            return []

        def scan_file(path: Path) -> list[SearchResult]:
            lines = read_lines(path)
            if lines is None:
                return []
            return match_lines(path, lines, rules)

        results: list[SearchResult] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for file_results in executor.map(scan_file, files):
                results.extend(file_results)
        return results
