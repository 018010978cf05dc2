"""pixelens locate command."""

from __future__ import annotations

from pathlib import Path

import click

from pixelens.cli.common import build_engine, load_issue, root_option
from pixelens.core.output import print_candidates, print_issue


@click.command()
@click.argument("issues_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("issue_id")
@root_option
@click.option("--limit", type=int, default=20, help="Maximum candidates to show")
def locate(issues_file: Path, issue_id: str, root: Path, limit: int):
    """Show where ISSUE_ID from ISSUES_FILE most likely lives in the source.

    Candidates are ranked id/class matches first, then CSS rules, tags and
    plain text. The first one is what `pixelens fix` would edit.
    """
    issue = load_issue(issues_file, issue_id)
    engine = build_engine(root)

    print_issue(issue)
    print_candidates(engine.locate(issue), limit=limit)
