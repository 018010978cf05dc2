"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from pixelens.core.config import ConfigError
from pixelens.core.issues import find_issue, load_issues
from pixelens.core.models import Issue, IssueFormatError
from pixelens.fix.engine import FixEngine
from pixelens.fix.ledger import LedgerError

root_option = click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project root (default: current dir)",
)


def build_engine(root: Path) -> FixEngine:
    try:
        return FixEngine(root)
    except (ConfigError, LedgerError) as e:
        raise click.ClickException(str(e)) from e


def load_issue(issues_file: Path, issue_id: str) -> Issue:
    try:
        issues = load_issues(issues_file)
    except IssueFormatError as e:
        raise click.ClickException(str(e)) from e

    issue = find_issue(issues, issue_id)
    if issue is None:
        known = ", ".join(i.id for i in issues) or "none"
        raise click.ClickException(f"Issue {issue_id} not found in {issues_file} (known: {known})")
    return issue
