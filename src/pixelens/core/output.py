"""Rich terminal formatting for PixeLens output."""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from pixelens.core.models import (
    EditRecord,
    Issue,
    MatchKind,
    PatchOutcome,
    PatchPlan,
    SearchResult,
    Severity,
)

console = Console()
error_console = Console(stderr=True)


SEVERITY_COLORS = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

MATCH_COLORS = {
    MatchKind.ID: "green",
    MatchKind.CLASS: "green",
    MatchKind.CSS: "cyan",
    MatchKind.TAG: "yellow",
    MatchKind.FALLBACK: "dim",
    MatchKind.PLAIN: "blue",
}


def format_result(result: SearchResult) -> str:
    """Format a single match for terminal output."""
    color = MATCH_COLORS.get(result.match_kind, "white")
    return (
        f"  [{color}]{result.match_kind.value:<8}[/{color}] "
        f"{escape(str(result.file_path))}:{result.line_number}\n"
        f"           [dim]{escape(result.line_content.strip())}[/dim]"
    )


def print_search_results(term: str, results: list[SearchResult]) -> None:
    """Print plain search results in file and line order."""
    if not results:
        console.print(f"\n  No results for '{escape(term)}'.\n")
        return

    console.print(f"\n  [bold]{len(results)} result(s) for '{escape(term)}'[/bold]\n")
    for result in results:
        console.print(
            f"  [blue]{escape(str(result.file_path))}[/blue]:{result.line_number}  "
            f"{escape(result.line_content)}"
        )
    console.print()


def print_issue(issue: Issue) -> None:
    color = SEVERITY_COLORS.get(issue.severity, "white")
    console.print(
        f"\n  [{color}]●[/{color}] [bold]{escape(issue.title or issue.id)}[/bold]  "
        f"[dim]{escape(issue.category)} | {escape(issue.element_selector)}[/dim]"
    )
    if issue.suggested_fix:
        console.print(f"    Fix: {escape(issue.suggested_fix)}")


def print_candidates(candidates: list[SearchResult], limit: int = 20) -> None:
    """Print ranked candidates; the first is the one a fix would target."""
    if not candidates:
        console.print("\n  No candidate locations found.\n")
        return

    console.print(f"\n  [bold]Candidates[/bold] ({len(candidates)})\n")
    for index, candidate in enumerate(candidates[:limit]):
        marker = "[green]→[/green]" if index == 0 else " "
        console.print(f"{marker}{format_result(candidate)}")
    if len(candidates) > limit:
        console.print(f"\n  [dim]... and {len(candidates) - limit} more[/dim]")
    console.print()


def print_patch_plan(plan: PatchPlan) -> None:
    """Print a fix preview to terminal."""
    if not plan.changed:
        console.print(f"\n  [yellow]Nothing to change:[/yellow] {escape(plan.message)}\n")
        return

    console.print(Panel(
        Syntax(plan.diff(), "diff", theme="ansi_dark", background_color="default"),
        title=f"[bold]Fix Preview: {escape(plan.file_path.name)}[/bold]",
        subtitle=escape(plan.message),
        border_style="cyan",
        padding=(0, 1),
    ))


def print_patch_outcome(outcome: PatchOutcome) -> None:
    """Print the result of a fix, manual write or undo."""
    location = ""
    if outcome.file_path:
        location = f"  [dim]{escape(str(outcome.file_path))}"
        if outcome.line_number:
            location += f":{outcome.line_number}"
        location += "[/dim]"

    if outcome.success:
        edit = f" (edit #{outcome.edit_id})" if outcome.edit_id is not None else ""
        console.print(f"  [green]✅[/green] {escape(outcome.message)}{edit}{location}")
    else:
        console.print(f"  [red]❌[/red] {escape(outcome.message)}{location}")
        if not outcome.audit_recorded:
            console.print("     [yellow]The file was changed but is missing from edit history.[/yellow]")


def print_edit_history(records: list[EditRecord]) -> None:
    """Print the edit ledger as a table, oldest first."""
    if not records:
        console.print("\n  No edits recorded yet.\n")
        return

    table = Table(title="Edit History", title_justify="left", padding=(0, 1))
    table.add_column("#", justify="right")
    table.add_column("When")
    table.add_column("File")
    table.add_column("Lines", justify="right")

    for record in records:
        when = datetime.fromtimestamp(record.timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")
        delta = len(record.modified_content.splitlines()) - len(record.original_content.splitlines())
        delta_str = f"+{delta}" if delta >= 0 else str(delta)
        table.add_row(str(record.id), when, escape(str(record.file_path)), delta_str)

    console.print()
    console.print(table)
    console.print()
