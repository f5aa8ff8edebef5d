"""Process settings — env-driven, separate from the per-project config.

Reads ``TANGLD_*`` environment variables and an optional ``.env`` file.
These settings describe how this process runs (log level, worker pool
size, default project root); what a project builds lives in its
``tangld.yaml`` (see ``tangld.models.config.ProjectConfig``).

Examples
--------
Override via environment::

    export TANGLD_LOG_LEVEL=DEBUG
    export TANGLD_PROJECT_ROOT=~/dotfiles
    export TANGLD_MAX_WORKERS=4
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class TangldSettings(BaseSettings):
    """Process-level settings with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TANGLD_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"
    debug: bool = False

    # None: the project root from tangld.yaml defaults (~/.tangld)
    project_root: Path | None = None

    # None: one worker per dispatched tangle task
    max_workers: int | None = None
    tangle_timeout_seconds: float = 300.0
