"""``tangld build`` — tangle stale source documents.

Exits with status 1 if any document failed to tangle; the failures stay
stale in the ledger and are retried on the next build.
"""

from __future__ import annotations

from pathlib import Path

import typer

from tangld.cli._common import (
    ROOT_OPTION,
    VERBOSE_OPTION,
    console,
    err_console,
    fatal_errors,
    make_pipeline,
)


def build_cmd(
    force: bool = typer.Option(
        False, "--force", "-f", help="Tangle every document, ignoring the ledger."
    ),
    refresh_library: bool = typer.Option(
        False, "--refresh-library", help="Rebuild the fragment library cache."
    ),
    root: Path = ROOT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Tangle every source document that changed since its last build."""
    with fatal_errors():
        pipeline = make_pipeline(root, verbose)
        verbose = verbose or pipeline.config.verbose
        report = pipeline.build(force=force, refresh_library=refresh_library)

    if verbose:
        for outcome in report.succeeded:
            console.print(f"[green]tangled[/green] {outcome.source_path}")
        console.print(
            f"[bold]{len(report.succeeded)}[/bold] tangled, "
            f"[bold]{len(report.skipped)}[/bold] up to date, "
            f"[bold]{len(report.failed)}[/bold] failed"
        )

    if report.failed:
        for outcome in report.failed:
            err_console.print(f"[bold red]failed[/bold red] {outcome.source_path}: {outcome.reason}")
        raise typer.Exit(code=1)
