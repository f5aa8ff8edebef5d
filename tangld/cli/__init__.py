"""tangld CLI — Typer-based command-line interface.

Provides the ``tangld`` command with subcommands for initializing a
project, showing its configuration, building, installing, cleaning and
checking it.

Successful runs are silent unless ``--verbose`` is given.  Any fatal error
prints one diagnostic line and exits with status 1.
"""
