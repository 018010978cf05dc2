"""pixelens find command."""

from __future__ import annotations

import json
from pathlib import Path

import click

from pixelens.cli.common import build_engine, root_option
from pixelens.core.output import print_search_results


@click.command()
@click.argument("term")
@root_option
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def find(term: str, root: Path, as_json: bool):
    """Find TERM (case-insensitive) in every source file of the project."""
    engine = build_engine(root)
    results = engine.search(term)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return

    print_search_results(term, results)
