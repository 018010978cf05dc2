"""Loading issue lists produced by the page analysis step."""

from __future__ import annotations

import json
from pathlib import Path

from pixelens.core.models import Issue, IssueFormatError


def load_issues(path: Path) -> list[Issue]:
    """Read a JSON array of issues, or an object with an ``issues`` array."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise IssueFormatError(f"{path}: invalid JSON ({e})") from e

    if isinstance(data, dict):
        data = data.get("issues")
    if not isinstance(data, list):
        raise IssueFormatError(f"{path}: expected a list of issues")

    issues = []
    for index, entry in enumerate(data):
        try:
            issues.append(Issue.from_dict(entry))
        except IssueFormatError as e:
            raise IssueFormatError(f"{path}: issue #{index}: {e}") from e
    return issues


def find_issue(issues: list[Issue], issue_id: str) -> Issue | None:
    return next((issue for issue in issues if issue.id == issue_id), None)
