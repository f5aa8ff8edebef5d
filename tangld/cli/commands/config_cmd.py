"""``tangld config`` — show the resolved project configuration."""

from __future__ import annotations

from pathlib import Path

from rich.table import Table

from tangld.cli._common import ROOT_OPTION, VERBOSE_OPTION, console, fatal_errors, make_pipeline


def config_cmd(
    root: Path = ROOT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Print the project directories and settings as tangld will use them."""
    with fatal_errors():
        pipeline = make_pipeline(root, verbose)
        config = pipeline.config
        dirs = pipeline.dirs

    table = Table(title=f"tangld — {pipeline.root}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, path in dirs.as_dict().items():
        table.add_row(f"dirs.{name}", str(path))
    for extra in pipeline.library_dirs(dirs)[1:]:
        table.add_row("library_dirs", str(extra))
    table.add_row("source_glob", config.source_glob)
    table.add_row("install_type", config.install_type.value)
    table.add_row("lazy", str(config.lazy))
    table.add_row("use_cache", str(config.use_cache))
    table.add_row("cache", str(config.cache_path(dirs.root)))
    table.add_row("ledger", str(config.ledger_path(dirs.root)))
    table.add_row("verbose", str(config.verbose))

    console.print(table)
