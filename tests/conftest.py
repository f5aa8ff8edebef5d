"""Shared test fixtures for tangld."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from tangld.config import TangldSettings
from tangld.core import layout as layout_ops
from tangld.core.engine import CallableTangleEngine
from tangld.core.errors import TangleFailure
from tangld.models.config import InstallType, ProjectConfig
from tangld.models.fragments import FragmentLibrary
from tangld.models.layout import ProjectDirs


class RecordingEngine(CallableTangleEngine):
    """Copies each document to its target and remembers what it tangled.

    Documents whose name appears in ``fail_on`` raise ``TangleFailure``.
    """

    def __init__(self, fail_on: set[str] | None = None) -> None:
        super().__init__(self._tangle)
        self.fail_on = set(fail_on or ())
        self.calls: list[Path] = []
        self.threads: set[str] = set()
        self._lock = threading.Lock()

    def _tangle(self, source: Path, target: Path, library: FragmentLibrary) -> set[Path]:
        with self._lock:
            self.calls.append(source)
            self.threads.add(threading.current_thread().name)
        if source.name in self.fail_on:
            raise TangleFailure(f"{source.name}: refused")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source.read_text(encoding="utf-8"), encoding="utf-8")
        return {target}


@pytest.fixture
def settings() -> TangldSettings:
    """Settings that ignore the caller's environment."""
    return TangldSettings(_env_file=None, project_root=None, max_workers=None)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., ProjectConfig]:
    """Factory fixture: a ProjectConfig whose directories all live in tmp_path."""

    def _factory(**overrides) -> ProjectConfig:
        defaults = {
            "dirs": {
                "root": str(tmp_path),
                "lib": "lib",
                "build": "build",
                "source": "src",
                "install": "home",
                "system": "system",
            },
            "install_type": InstallType.LINK,
        }
        defaults.update(overrides)
        return ProjectConfig(**defaults)

    return _factory


@pytest.fixture
def config(make_config: Callable[..., ProjectConfig]) -> ProjectConfig:
    return make_config()


@pytest.fixture
def dirs(tmp_path: Path, config: ProjectConfig) -> ProjectDirs:
    """A resolved and materialized project layout under tmp_path."""
    resolved = layout_ops.resolve(config.dirs, override_root=tmp_path)
    layout_ops.materialize(resolved)
    return resolved


@pytest.fixture
def engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def write_source(dirs: ProjectDirs) -> Callable[..., Path]:
    """Factory fixture: create a literate document under the source dir."""

    def _factory(relative: str, text: str = "#+begin_src sh\necho hi\n#+end_src\n") -> Path:
        path = dirs.source / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _factory


@pytest.fixture
def make_engine() -> Callable[..., RecordingEngine]:
    """Factory fixture: a RecordingEngine that fails on the given file names."""

    def _factory(fail_on: set[str] | None = None) -> RecordingEngine:
        return RecordingEngine(fail_on=fail_on)

    return _factory
