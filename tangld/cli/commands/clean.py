"""``tangld clean`` — drop the library cache and the modification ledger."""

from __future__ import annotations

from pathlib import Path

from tangld.cli._common import ROOT_OPTION, VERBOSE_OPTION, console, fatal_errors, make_pipeline


def clean_cmd(
    root: Path = ROOT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Remove the cache and ledger so the next build starts from scratch."""
    with fatal_errors():
        pipeline = make_pipeline(root, verbose)
        removed = pipeline.clean()

    if verbose:
        for path in removed:
            console.print(f"[yellow]removed[/yellow] {path}")
