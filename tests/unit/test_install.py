"""Tests for install strategies — link, direct, stage, stow."""

from __future__ import annotations

from pathlib import Path

import pytest

from tangld.core import install
from tangld.core.errors import InstallConflict, TangldIOError, UnsupportedOperation
from tangld.core.install import (
    DirectStrategy,
    LinkStrategy,
    StageStrategy,
    StowStrategy,
    strategy_for,
)
from tangld.models.config import InstallType
from tangld.models.layout import ProjectDirs


@pytest.fixture
def artifact(dirs: ProjectDirs) -> Path:
    path = dirs.build / "config" / "app.conf"
    path.parent.mkdir(parents=True)
    path.write_text("key = value\n")
    return path


class TestPathMapping:
    def test_install_target_reroots_under_install(self, dirs: ProjectDirs, artifact: Path):
        assert LinkStrategy(dirs).install_target(artifact) == dirs.install / "config" / "app.conf"

    def test_build_target_strips_extension(self, dirs: ProjectDirs):
        source = dirs.source / "shell" / "zshrc.org"
        assert LinkStrategy(dirs).build_target(source) == dirs.build / "shell" / "zshrc"

    def test_artifact_outside_build_rejected(self, dirs: ProjectDirs, tmp_path: Path):
        with pytest.raises(InstallConflict):
            LinkStrategy(dirs).install_target(tmp_path / "stray")


class TestLinkStrategy:
    def test_creates_symlink(self, dirs: ProjectDirs, artifact: Path):
        placed = LinkStrategy(dirs).place(artifact)
        assert placed.is_symlink()
        assert placed.resolve() == artifact.resolve()

    def test_idempotent(self, dirs: ProjectDirs, artifact: Path):
        strategy = LinkStrategy(dirs)
        first = strategy.place(artifact)
        second = strategy.place(artifact)
        assert first == second
        links = [p for p in (dirs.install / "config").iterdir() if p.is_symlink()]
        assert len(links) == 1

    def test_existing_link_left_untouched(self, dirs: ProjectDirs, artifact: Path, tmp_path: Path):
        other = tmp_path / "other"
        other.write_text("other")
        target = dirs.install / "config" / "app.conf"
        target.parent.mkdir(parents=True)
        target.symlink_to(other)

        LinkStrategy(dirs).place(artifact)

        assert target.resolve() == other.resolve()

    def test_regular_file_is_conflict(self, dirs: ProjectDirs, artifact: Path):
        target = dirs.install / "config" / "app.conf"
        target.parent.mkdir(parents=True)
        target.write_text("hand edited")

        with pytest.raises(InstallConflict):
            LinkStrategy(dirs).place(artifact)
        assert target.read_text() == "hand edited"


class TestDirectStrategy:
    def test_moves_and_creates_parents(self, dirs: ProjectDirs, artifact: Path):
        placed = DirectStrategy(dirs).place(artifact)
        assert placed == dirs.install / "config" / "app.conf"
        assert placed.read_text() == "key = value\n"
        assert not artifact.exists()

    def test_replaces_existing_file(self, dirs: ProjectDirs, artifact: Path):
        target = dirs.install / "config" / "app.conf"
        target.parent.mkdir(parents=True)
        target.write_text("old")
        DirectStrategy(dirs).place(artifact)
        assert target.read_text() == "key = value\n"

    def test_unwritable_parent(self, dirs: ProjectDirs, artifact: Path):
        # A file where the parent directory should be.
        (dirs.install / "config").write_text("blocker")
        with pytest.raises(TangldIOError):
            DirectStrategy(dirs).place(artifact)
        assert artifact.exists()


class TestStageStrategy:
    def test_copies_into_stage_dir(self, dirs: ProjectDirs, artifact: Path, tmp_path: Path):
        stage = tmp_path / "stage"
        placed = StageStrategy(dirs, stage).place(artifact)
        assert placed == stage / "config" / "app.conf"
        assert placed.read_text() == "key = value\n"
        assert artifact.exists()

    def test_live_path_untouched(self, dirs: ProjectDirs, artifact: Path, tmp_path: Path):
        StageStrategy(dirs, tmp_path / "stage").place(artifact)
        assert not (dirs.install / "config" / "app.conf").exists()


class TestStowStrategy:
    def test_unavailable_is_unsupported(self, dirs: ProjectDirs, artifact: Path):
        strategy = StowStrategy(dirs, command="tangld-no-such-stow-binary")
        with pytest.raises(UnsupportedOperation):
            strategy.place(artifact)

    def test_runs_stow_once(self, dirs: ProjectDirs, artifact: Path, monkeypatch):
        calls: list[list[str]] = []

        class _Proc:
            returncode = 0
            stderr = ""

        monkeypatch.setattr(install.shutil, "which", lambda cmd: "/usr/bin/stow")
        monkeypatch.setattr(
            install.subprocess, "run", lambda argv, **kw: calls.append(argv) or _Proc()
        )
        second = dirs.build / "other"
        second.write_text("x")
        strategy = StowStrategy(dirs)

        placed = strategy.place(artifact)
        strategy.place(second)

        assert placed == dirs.install / "config" / "app.conf"
        assert len(calls) == 1
        assert f"--target={dirs.install}" in calls[0]
        assert calls[0][-1] == dirs.build.name

    def test_failed_stow_not_rerun(self, dirs: ProjectDirs, artifact: Path, monkeypatch):
        calls: list[list[str]] = []

        class _Proc:
            returncode = 1
            stderr = "stow: conflict on config/app.conf"

        monkeypatch.setattr(install.shutil, "which", lambda cmd: "/usr/bin/stow")
        monkeypatch.setattr(
            install.subprocess, "run", lambda argv, **kw: calls.append(argv) or _Proc()
        )
        second = dirs.build / "other"
        second.write_text("x")
        strategy = StowStrategy(dirs)

        with pytest.raises(InstallConflict, match="conflict on config/app.conf"):
            strategy.place(artifact)
        with pytest.raises(InstallConflict, match="stow exited 1"):
            strategy.place(second)

        assert len(calls) == 1


class TestStrategyFor:
    @pytest.mark.parametrize(
        ("install_type", "cls"),
        [
            (InstallType.LINK, LinkStrategy),
            (InstallType.DIRECT, DirectStrategy),
            (InstallType.STAGE, StageStrategy),
            (InstallType.STOW, StowStrategy),
        ],
    )
    def test_selects_variant(self, make_config, dirs: ProjectDirs, install_type, cls):
        strategy = strategy_for(make_config(install_type=install_type), dirs)
        assert isinstance(strategy, cls)
        assert strategy.install_type == install_type

    def test_stage_dir_under_root(self, make_config, dirs: ProjectDirs):
        strategy = strategy_for(make_config(install_type="stage", stage_dir="review"), dirs)
        assert strategy.stage_dir == dirs.root / "review"
