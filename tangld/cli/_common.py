"""Shared plumbing for CLI commands: logging setup, pipeline construction,
and fatal-error reporting."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from tangld.config import TangldSettings
from tangld.core.errors import TangldError
from tangld.core.pipeline import BuildPipeline

console = Console()
err_console = Console(stderr=True)

ROOT_OPTION = typer.Option(
    None,
    "--root",
    "-r",
    help="Project root holding tangld.yaml (default: $TANGLD_PROJECT_ROOT or ~/.tangld).",
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Report progress.")


def configure_logging(settings: TangldSettings, verbose: bool) -> None:
    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def make_pipeline(root: Path | None, verbose: bool) -> BuildPipeline:
    settings = TangldSettings()
    configure_logging(settings, verbose)
    return BuildPipeline(root, settings=settings)


@contextmanager
def fatal_errors() -> Iterator[None]:
    """Turn a ``TangldError`` into one diagnostic line and exit status 1."""
    try:
        yield
    except TangldError as exc:
        err_console.print(f"[bold red]tangld:[/bold red] {exc}")
        raise typer.Exit(code=1)
