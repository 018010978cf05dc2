"""Click CLI entry point for PixeLens."""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from pixelens._version import __version__
from pixelens.core.output import error_console


@click.group()
@click.version_option(version=__version__, prog_name="pixelens")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """PixeLens - find UI issues in your source tree and fix them.

    Search a project, locate the code behind an issue, apply suggested
    fixes and review or undo every edit.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


# Import and register subcommands
from pixelens.cli.find_cmd import find  # noqa: E402
from pixelens.cli.locate_cmd import locate  # noqa: E402
from pixelens.cli.fix_cmd import fix  # noqa: E402
from pixelens.cli.history_cmd import history  # noqa: E402
from pixelens.cli.undo_cmd import undo  # noqa: E402

cli.add_command(find)
cli.add_command(locate)
cli.add_command(fix)
cli.add_command(history)
cli.add_command(undo)


if __name__ == "__main__":
    cli()
