"""Main Typer application — imports and registers all CLI commands.

Entry point: ``tangld`` (configured via pyproject.toml console scripts).
"""

from __future__ import annotations

import typer

from tangld.cli.commands.build import build_cmd
from tangld.cli.commands.check import check_cmd
from tangld.cli.commands.clean import clean_cmd
from tangld.cli.commands.config_cmd import config_cmd
from tangld.cli.commands.init import init_cmd
from tangld.cli.commands.install import install_cmd

app = typer.Typer(
    name="tangld",
    help="tangld: build and install a literate configuration project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="init", help="Create the project layout and tangld.yaml.")(init_cmd)
app.command(name="config", help="Show the resolved project configuration.")(config_cmd)
app.command(name="build", help="Tangle stale source documents.")(build_cmd)
app.command(name="install", help="Install built artifacts.")(install_cmd)
app.command(name="clean", help="Remove the library cache and ledger.")(clean_cmd)
app.command(name="check", help="Check the project layout and external tools.")(check_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
