"""Project layout resolution — raw directory settings to absolute paths.

``resolve`` is pure: it only normalizes paths.  Creating the directories is
the separate, idempotent ``materialize`` step.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from collections.abc import Iterable, Mapping
from pathlib import Path

from tangld.core.errors import InvalidLayout, TangldIOError
from tangld.models.config import DEFAULT_DIRS, LOGICAL_DIRS
from tangld.models.layout import ProjectDirs

logger = logging.getLogger(__name__)

# $VAR, ${VAR} or %VAR% left behind after expansion
_UNRESOLVED_VAR = re.compile(r"\$\{?[A-Za-z_][A-Za-z0-9_]*\}?|%[A-Za-z_][A-Za-z0-9_]*%")


def _expand(raw: str, name: str) -> Path:
    expanded = os.path.expandvars(os.path.expanduser(raw))
    if _UNRESOLVED_VAR.search(expanded):
        raise InvalidLayout(
            f"Directory {name!r} contains an unresolved variable: {raw!r}"
        )
    if "\x00" in expanded:
        raise InvalidLayout(f"Directory {name!r} is not a valid path: {raw!r}")
    return Path(expanded)


def resolve(
    raw_dirs: Mapping[str, str], override_root: str | Path | None = None
) -> ProjectDirs:
    """Resolve the six logical directories to absolute paths.

    Relative entries are anchored at ``root``; ``~`` and environment
    variables are expanded.  Missing entries fall back to the defaults.

    Raises
    ------
    InvalidLayout
        If ``root`` is empty or any entry leaves an unresolved variable.
    """
    merged = {**DEFAULT_DIRS, **{k: v for k, v in raw_dirs.items() if v is not None}}
    unknown = set(merged) - set(LOGICAL_DIRS)
    if unknown:
        raise InvalidLayout(f"Unknown project directories: {sorted(unknown)}")

    raw_root = str(override_root) if override_root is not None else merged["root"]
    if not raw_root or not str(raw_root).strip():
        raise InvalidLayout("Project root must not be empty")

    root = _expand(str(raw_root), "root")
    if not root.is_absolute():
        root = Path.cwd() / root
    root = Path(os.path.normpath(root))

    resolved: dict[str, Path] = {"root": root}
    for name in LOGICAL_DIRS[1:]:
        raw = merged[name]
        if not raw or not str(raw).strip():
            raise InvalidLayout(f"Directory {name!r} must not be empty")
        path = _expand(str(raw), name)
        if not path.is_absolute():
            path = root / path
        resolved[name] = Path(os.path.normpath(path))

    return ProjectDirs(**resolved)


def materialize(dirs: ProjectDirs) -> set[Path]:
    """Create any missing project directories.

    Idempotent: existing directories are left alone.  Returns the set of
    directories actually created.

    Raises
    ------
    TangldIOError
        If a path exists but is not a directory, or cannot be created.
    """
    created: set[Path] = set()
    for name, path in dirs.as_dict().items():
        if path.is_dir():
            continue
        if path.exists():
            raise TangldIOError(f"Project path {name!r} exists and is not a directory: {path}")
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TangldIOError(f"Cannot create {name!r} directory {path}: {exc}") from exc
        logger.debug("Created %s directory %s", name, path)
        created.add(path)
    return created


def missing(dirs: ProjectDirs) -> list[str]:
    """Return the logical names whose directories do not exist."""
    return [name for name, path in dirs.as_dict().items() if not path.is_dir()]


def teardown(dirs: ProjectDirs) -> None:
    """Remove the project tree rooted at ``dirs.root``.

    Only directories beneath ``root`` are removed; ``install`` and
    ``system`` commonly point elsewhere (e.g. ``~``) and are never touched
    unless they live under the root.
    """
    if dirs.root.is_dir():
        try:
            shutil.rmtree(dirs.root)
        except OSError as exc:
            raise TangldIOError(f"Cannot remove project root {dirs.root}: {exc}") from exc
        logger.info("Removed project tree %s", dirs.root)


def resolve_extra(raw_paths: Iterable[str], root: Path) -> list[Path]:
    """Resolve additional directories (e.g. shared libraries) against *root*."""
    resolved: list[Path] = []
    for raw in raw_paths:
        path = _expand(str(raw), "library_dirs")
        if not path.is_absolute():
            path = root / path
        resolved.append(Path(os.path.normpath(path)))
    return resolved
