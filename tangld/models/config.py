"""Project configuration models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class InstallType(str, Enum):
    """How a built artifact reaches its live location."""

    LINK = "link"
    STAGE = "stage"
    STOW = "stow"
    DIRECT = "direct"


# Logical directory names, in resolution order.  ``root`` must come first.
LOGICAL_DIRS: tuple[str, ...] = ("root", "lib", "build", "source", "install", "system")

DEFAULT_DIRS: dict[str, str] = {
    "root": "~/.tangld",
    "lib": "lib",
    "build": "build",
    "source": "src",
    "install": "~",
    "system": "system",
}

DEFAULT_TANGLE_COMMAND: list[str] = [
    "emacs",
    "--batch",
    "--eval",
    "(progn (require 'org) (require 'ob-tangle) "
    "(org-babel-tangle-file \"{source}\" \"{target}\"))",
]


class ProjectConfig(BaseModel):
    """Resolved configuration value for one project.

    Loaded from ``tangld.yaml`` at the project root and threaded explicitly
    through the pipeline entry points.  Never mutated after load.
    """

    model_config = ConfigDict(frozen=True)

    dirs: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_DIRS))
    library_dirs: list[str] = []  # searched after the lib directory
    source_glob: str = "**/*.org"
    use_cache: bool = True
    cache_file: str = ".tangld/library-cache.json"  # relative to the project root
    ledger_file: str = ".tangld/ledger.json"  # relative to the project root
    install_type: InstallType = InstallType.LINK
    lazy: bool = True
    verbose: bool = False
    stage_dir: str = "stage"  # relative to the project root
    stow_command: str = "stow"
    tangle_command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TANGLE_COMMAND)
    )

    def cache_path(self, root: Path) -> Path:
        return Path(root) / self.cache_file

    def ledger_path(self, root: Path) -> Path:
        return Path(root) / self.ledger_file

    def stage_path(self, root: Path) -> Path:
        return Path(root) / self.stage_dir
