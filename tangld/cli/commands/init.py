"""``tangld init`` — create the project layout and ``tangld.yaml``."""

from __future__ import annotations

from pathlib import Path

from tangld.cli._common import ROOT_OPTION, VERBOSE_OPTION, console, fatal_errors, make_pipeline


def init_cmd(
    root: Path = ROOT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Create any missing project directories and a default tangld.yaml."""
    with fatal_errors():
        pipeline = make_pipeline(root, verbose)
        created = pipeline.init()

    if verbose:
        if not created:
            console.print(f"[dim]Project at {pipeline.root} already initialized.[/dim]")
        for path in sorted(created):
            console.print(f"[green]created[/green] {path}")
