"""``tangld install`` — place built artifacts with the configured strategy."""

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


def install_cmd(
    root: Path = ROOT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Install every artifact in the build directory."""
    with fatal_errors():
        pipeline = make_pipeline(root, verbose)
        verbose = verbose or pipeline.config.verbose
        report = pipeline.install()

    if verbose:
        for result in report.installed:
            console.print(f"[green]installed[/green] {result.installed_path}")

    if report.failed:
        for result in report.failed:
            err_console.print(f"[bold red]failed[/bold red] {result.artifact_path}: {result.reason}")
        raise typer.Exit(code=1)
