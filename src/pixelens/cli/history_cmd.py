"""pixelens history command."""

from __future__ import annotations

import json
from pathlib import Path

import click

from pixelens.cli.common import build_engine, root_option
from pixelens.core.output import print_edit_history
from pixelens.fix.ledger import LedgerError


@click.command()
@root_option
@click.option("--json", "as_json", is_flag=True, help="Export as JSON")
def history(root: Path, as_json: bool):
    """Show every file edit PixeLens has made, oldest first."""
    engine = build_engine(root)
    try:
        records = engine.list_edit_history()
    except LedgerError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    print_edit_history(records)
