"""pixelens undo command."""

from __future__ import annotations

from pathlib import Path

import click
from rich.prompt import Confirm

from pixelens.cli.common import build_engine, root_option
from pixelens.core.output import console, print_edit_history, print_patch_outcome


@click.command()
@click.argument("edit_id", type=int, required=False)
@root_option
@click.option("--list", "list_all", is_flag=True, help="List edits that can still be undone")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def undo(edit_id: int | None, root: Path, list_all: bool, yes: bool):
    """Undo a recorded edit by restoring the file's previous content.

    Refuses when the file has changed since the edit was made.
    """
    engine = build_engine(root)

    if list_all or edit_id is None:
        entries = engine.list_undoable()
        if not entries:
            console.print("\n  No undoable edits found.\n")
            return
        print_edit_history(entries)
        if edit_id is None:
            console.print("  Usage: pixelens undo <EDIT_ID>\n")
        return

    if not yes:
        if not Confirm.ask(f"  Revert edit #{edit_id}?", default=False):
            console.print("  [dim]Skipped.[/dim]")
            return

    outcome = engine.undo(edit_id)
    print_patch_outcome(outcome)
    if not outcome.success:
        raise SystemExit(1)
