"""Install strategies — how a built artifact reaches its live location.

One strategy is selected from configuration per invocation (``strategy_for``)
and then applied to every artifact.  All variants share the same path
mapping: an artifact's path relative to the build directory is re-rooted
under the install directory.

==========  =============================================================
link        symlink at the installed path -> artifact; existing links are
            left alone, a regular file there is an ``InstallConflict``
direct      move the artifact into place, creating parent directories
stage       copy into the staging directory; the live path is untouched
stow        delegate to GNU Stow; ``UnsupportedOperation`` if missing
==========  =============================================================
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from tangld.core.errors import (
    InstallConflict,
    TangldIOError,
    UnsupportedOperation,
)
from tangld.models.config import InstallType, ProjectConfig
from tangld.models.layout import ProjectDirs

logger = logging.getLogger(__name__)


def _ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise TangldIOError(f"Cannot create {path.parent}: {exc}") from exc


class InstallStrategy(ABC):
    """Base class for install variants.

    Parameters
    ----------
    dirs:
        The resolved project layout.
    """

    install_type: InstallType

    def __init__(self, dirs: ProjectDirs) -> None:
        self.dirs = dirs

    # ------------------------------------------------------------------
    # Path mapping (shared by every variant)
    # ------------------------------------------------------------------

    def build_target(self, source_path: Path) -> Path:
        """Where the tangled output of *source_path* lands in the build tree.

        ``source/dir/name.org`` maps to ``build/dir/name``.
        """
        relative = Path(source_path).relative_to(self.dirs.source)
        return self.dirs.build / relative.with_suffix("")

    def install_target(self, artifact_path: Path) -> Path:
        """The live location of a built artifact under the install directory."""
        try:
            relative = Path(artifact_path).relative_to(self.dirs.build)
        except ValueError as exc:
            raise InstallConflict(
                f"{artifact_path} is not inside the build directory {self.dirs.build}"
            ) from exc
        return self.dirs.install / relative

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    @abstractmethod
    def place(self, artifact_path: Path) -> Path:
        """Install one artifact and return where it was placed."""


class LinkStrategy(InstallStrategy):
    install_type = InstallType.LINK

    def place(self, artifact_path: Path) -> Path:
        target = self.install_target(artifact_path)
        if target.is_symlink():
            logger.debug("Link %s already present; leaving it", target)
            return target
        if target.exists():
            raise InstallConflict(f"Refusing to replace existing file {target} with a link")
        _ensure_parent(target)
        try:
            target.symlink_to(Path(artifact_path).absolute())
        except OSError as exc:
            raise TangldIOError(f"Cannot link {target}: {exc}") from exc
        return target


class DirectStrategy(InstallStrategy):
    install_type = InstallType.DIRECT

    def place(self, artifact_path: Path) -> Path:
        target = self.install_target(artifact_path)
        if target.is_dir() and not target.is_symlink():
            raise InstallConflict(f"Refusing to replace directory {target}")
        _ensure_parent(target)
        try:
            if target.is_symlink():
                target.unlink()
            shutil.move(str(artifact_path), str(target))
        except OSError as exc:
            raise TangldIOError(f"Cannot move {artifact_path} to {target}: {exc}") from exc
        return target


class StageStrategy(InstallStrategy):
    """Copy artifacts into a staging tree for review; never touches live paths."""

    install_type = InstallType.STAGE

    def __init__(self, dirs: ProjectDirs, stage_dir: Path) -> None:
        super().__init__(dirs)
        self.stage_dir = Path(stage_dir)

    def place(self, artifact_path: Path) -> Path:
        live = self.install_target(artifact_path)
        staged = self.stage_dir / live.relative_to(self.dirs.install)
        _ensure_parent(staged)
        try:
            shutil.copy2(artifact_path, staged)
        except OSError as exc:
            raise TangldIOError(f"Cannot stage {artifact_path}: {exc}") from exc
        return staged


class StowStrategy(InstallStrategy):
    """Hand the whole build tree to GNU Stow as a single package.

    Stow runs at most once per strategy instance; later artifacts are
    already covered by the first run, or fail with its error.
    """

    install_type = InstallType.STOW

    def __init__(self, dirs: ProjectDirs, command: str = "stow") -> None:
        super().__init__(dirs)
        self.command = command
        self._stowed = False
        self._failure: InstallConflict | None = None

    def available(self) -> bool:
        return shutil.which(self.command) is not None

    def place(self, artifact_path: Path) -> Path:
        target = self.install_target(artifact_path)
        if self._failure is not None:
            raise self._failure
        if not self._stowed:
            if not self.available():
                raise UnsupportedOperation(
                    f"Install type 'stow' needs {self.command!r} on PATH"
                )
            argv = [
                self.command,
                f"--dir={self.dirs.build.parent}",
                f"--target={self.dirs.install}",
                "--restow",
                self.dirs.build.name,
            ]
            logger.debug("Running %s", argv)
            proc = subprocess.run(argv, capture_output=True, text=True, check=False)
            if proc.returncode != 0:
                self._failure = InstallConflict(
                    f"stow exited {proc.returncode}: {proc.stderr.strip()}"
                )
                raise self._failure
            self._stowed = True
        return target


def strategy_for(config: ProjectConfig, dirs: ProjectDirs) -> InstallStrategy:
    """Select the install strategy named by *config*."""
    install_type = InstallType(config.install_type)
    if install_type == InstallType.LINK:
        return LinkStrategy(dirs)
    if install_type == InstallType.DIRECT:
        return DirectStrategy(dirs)
    if install_type == InstallType.STAGE:
        return StageStrategy(dirs, config.stage_path(dirs.root))
    if install_type == InstallType.STOW:
        return StowStrategy(dirs, config.stow_command)
    raise UnsupportedOperation(f"Unknown install type: {install_type!r}")
