"""Resolved project layout."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ProjectDirs(BaseModel):
    """Absolute paths for the six logical project directories.

    Produced by ``tangld.core.layout.resolve``; read-only thereafter.
    """

    model_config = ConfigDict(frozen=True)

    root: Path
    lib: Path
    build: Path
    source: Path
    install: Path
    system: Path

    def as_dict(self) -> dict[str, Path]:
        """Return the directories as an ordered name -> path mapping."""
        return {
            "root": self.root,
            "lib": self.lib,
            "build": self.build,
            "source": self.source,
            "install": self.install,
            "system": self.system,
        }
