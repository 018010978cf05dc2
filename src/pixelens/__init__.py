"""PixeLens: locate UI issues in a source tree and apply suggested fixes."""

from pixelens._version import __version__
from pixelens.core.models import EditRecord, Issue, MatchKind, PatchOutcome, SearchResult
from pixelens.fix.engine import FixEngine

__all__ = [
    "__version__",
    "EditRecord",
    "FixEngine",
    "Issue",
    "MatchKind",
    "PatchOutcome",
    "SearchResult",
]
