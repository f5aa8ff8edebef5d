"""``tangld check`` — verify the project layout and external tools."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from tangld.cli._common import ROOT_OPTION, VERBOSE_OPTION, console, err_console, fatal_errors, make_pipeline


def _yes_no(flag: bool) -> str:
    return "[green]Yes[/green]" if flag else "[yellow]No[/yellow]"


def check_cmd(
    root: Path = ROOT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Exit non-zero if any project directory is missing."""
    with fatal_errors():
        pipeline = make_pipeline(root, verbose)
        report = pipeline.check()

    if verbose:
        table = Table(title="tangld check")
        table.add_column("Check", style="cyan")
        table.add_column("Result", justify="center")
        table.add_row("Project directories", _yes_no(report.ok))
        table.add_row("Tangle command on PATH", _yes_no(report.tangle_command_available))
        table.add_row("stow on PATH", _yes_no(report.stow_available))
        table.add_row("Library cache present", _yes_no(report.cache_present))
        table.add_row("Ledger entries", str(report.ledger_entries))
        console.print(table)

    if not report.ok:
        err_console.print(
            f"[bold red]tangld:[/bold red] missing directories: {', '.join(report.missing_dirs)}"
            " (run `tangld init`)"
        )
        raise typer.Exit(code=1)
