"""pixelens fix command."""

from __future__ import annotations

from pathlib import Path

import click
from rich.prompt import Confirm

from pixelens.cli.common import build_engine, load_issue, root_option
from pixelens.core.output import (
    console,
    print_candidates,
    print_issue,
    print_patch_outcome,
    print_patch_plan,
)


@click.command()
@click.argument("issues_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("issue_id")
@root_option
@click.option("--preview", is_flag=True, help="Preview fix without applying")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def fix(issues_file: Path, issue_id: str, root: Path, preview: bool, yes: bool):
    """Apply the suggested fix for ISSUE_ID from ISSUES_FILE.

    Only fixes PixeLens knows how to place safely are applied (missing alt
    text, colour declarations). Everything else lists the candidate
    locations for a manual edit.
    """
    issue = load_issue(issues_file, issue_id)
    engine = build_engine(root)
    print_issue(issue)

    try:
        plan = engine.preview_fix(issue)
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Cannot read best match: {e}") from e

    if plan is None:
        outcome = engine.apply_fix(issue)
        console.print()
        print_patch_outcome(outcome)
        print_candidates(outcome.candidates)
        if not outcome.success:
            raise SystemExit(1)
        return

    print_patch_plan(plan)

    if preview or not plan.changed:
        return

    if not yes:
        if not Confirm.ask("  Apply this fix?", default=False):
            console.print("  [dim]Skipped.[/dim]")
            return

    outcome = engine.apply_fix(issue)
    print_patch_outcome(outcome)
    if not outcome.success:
        print_candidates(outcome.candidates)
        raise SystemExit(1)
    console.print("  [dim]Run `pixelens undo <EDIT_ID>` to revert.[/dim]\n")
