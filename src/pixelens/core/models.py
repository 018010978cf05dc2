"""Shared data models used across PixeLens modules."""

from __future__ import annotations

import difflib
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class IssueFormatError(ValueError):
    """An issue record (or issue file) could not be interpreted."""


class Severity(enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MatchKind(enum.Enum):
    CLASS = "class"
    ID = "id"
    TAG = "tag"
    CSS = "css"
    FALLBACK = "fallback"
    PLAIN = "plain"


# Lower tier sorts first. PLAIN is only produced by the generic text search.
MATCH_TIERS = {
    MatchKind.ID: 0,
    MatchKind.CLASS: 0,
    MatchKind.CSS: 1,
    MatchKind.TAG: 2,
    MatchKind.FALLBACK: 3,
    MatchKind.PLAIN: 4,
}


# Field aliases accepted by Issue.from_dict: camelCase, the
# desktop panel's short names, and snake_case.
_ISSUE_ALIASES = {
    "category": ("category", "type"),
    "element_selector": ("element_selector", "elementSelector", "element"),
    "suggested_fix": ("suggested_fix", "suggestedFix", "fix"),
}


@dataclass(frozen=True)
class Issue:
    """A UI defect reported by the analysis step."""

    id: str
    title: str
    description: str
    severity: Severity
    category: str
    element_selector: str
    suggested_fix: str

    @property
    def selector_fragments(self) -> list[str]:
        """Comma-separated pieces of the selector, stripped, empties dropped."""
        return [frag.strip() for frag in self.element_selector.split(",") if frag.strip()]

    @property
    def normalized_category(self) -> str:
        return self.category.strip().lower()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Issue:
        if not isinstance(data, dict):
            raise IssueFormatError(f"Issue must be an object, got {type(data).__name__}")

        def pick(key: str) -> str:
            for alias in _ISSUE_ALIASES.get(key, (key,)):
                if alias in data and data[alias] is not None:
                    return str(data[alias])
            return ""

        severity_raw = str(data.get("severity", "medium")).strip().lower()
        try:
            severity = Severity(severity_raw)
        except ValueError:
            raise IssueFormatError(f"Unknown severity: {severity_raw!r}") from None

        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            severity=severity,
            category=pick("category"),
            element_selector=pick("element_selector"),
            suggested_fix=pick("suggested_fix"),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "category": self.category,
            "elementSelector": self.element_selector,
            "suggestedFix": self.suggested_fix,
        }


@dataclass(frozen=True)
class SearchResult:
    """A single line that matched a query."""

    file_path: Path
    line_number: int  # 1-based
    line_content: str
    match_kind: MatchKind

    @property
    def tier(self) -> int:
        return MATCH_TIERS[self.match_kind]

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": str(self.file_path),
            "line_number": self.line_number,
            "line_content": self.line_content,
            "match_kind": self.match_kind.value,
        }


@dataclass
class PatchOutcome:
    """Result of one fix attempt (or of a manual write / undo)."""

    success: bool
    message: str
    file_path: Path | None = None
    line_number: int | None = None
    candidates: list[SearchResult] = field(default_factory=list)
    edit_id: int | None = None
    audit_recorded: bool = True


@dataclass(frozen=True)
class EditRecord:
    """One row of the edit ledger. Never mutated once written."""

    id: int
    file_path: Path
    original_content: str
    modified_content: str
    timestamp_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_path": str(self.file_path),
            "original_content": self.original_content,
            "modified_content": self.modified_content,
            "timestamp": self.timestamp_ms,
        }


@dataclass
class PatchPlan:
    """A fix rule's proposed rewrite of one file, not yet written."""

    rule: str
    file_path: Path
    original_content: str
    new_content: str
    message: str = ""

    @property
    def changed(self) -> bool:
        return self.new_content != self.original_content

    def diff(self) -> str:
        """Unified diff between the current and proposed content."""
        return "".join(
            difflib.unified_diff(
                self.original_content.splitlines(keepends=True),
                self.new_content.splitlines(keepends=True),
                fromfile=f"a/{self.file_path.name}",
                tofile=f"b/{self.file_path.name}",
            )
        )
