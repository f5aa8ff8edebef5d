"""Unit tests for the CLI — Typer command registration and basic behavior.

Exercises the commands through typer.testing.CliRunner against a project
whose tangle command is a small Python script instead of Emacs.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from tangld.cli.app import app

runner = CliRunner()

_COPY_SCRIPT = (
    "import sys, pathlib;"
    "src, dst = map(pathlib.Path, sys.argv[1:3]);"
    "dst.write_text(src.read_text())"
)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """An initialized project whose tangler copies documents verbatim."""
    root = tmp_path / "project"
    root.mkdir()
    config = {
        "dirs": {"root": str(root), "install": "home"},
        "tangle_command": [sys.executable, "-c", _COPY_SCRIPT, "{source}", "{target}"],
    }
    (root / "tangld.yaml").write_text(yaml.safe_dump(config))
    result = runner.invoke(app, ["init", "--root", str(root)])
    assert result.exit_code == 0, result.output
    return root


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "config", "build", "install", "clean", "check"):
            assert command in result.output

    @pytest.mark.parametrize("command", ["init", "config", "build", "install", "clean", "check"])
    def test_command_help(self, command: str):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0

    def test_build_has_force_flag(self):
        result = runner.invoke(app, ["build", "--help"])
        assert "--force" in result.output


# ---------------------------------------------------------------------------
# Test: commands against a real project tree
# ---------------------------------------------------------------------------


class TestCommands:
    def test_init_creates_layout(self, project_root: Path):
        assert (project_root / "src").is_dir()
        assert (project_root / "build").is_dir()
        assert (project_root / "home").is_dir()

    def test_build_is_silent_on_success(self, project_root: Path):
        (project_root / "src" / "a.org").write_text("alias ll='ls -l'\n")
        result = runner.invoke(app, ["build", "--root", str(project_root)])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == ""
        assert (project_root / "build" / "a").read_text() == "alias ll='ls -l'\n"

    def test_build_verbose_reports(self, project_root: Path):
        (project_root / "src" / "a.org").write_text("x\n")
        result = runner.invoke(app, ["build", "--root", str(project_root), "--verbose"])
        assert result.exit_code == 0, result.output
        assert "1 tangled" in result.output

    def test_build_then_install(self, project_root: Path):
        (project_root / "src" / "a.org").write_text("x\n")
        runner.invoke(app, ["build", "--root", str(project_root)])

        result = runner.invoke(app, ["install", "--root", str(project_root)])

        assert result.exit_code == 0, result.output
        assert (project_root / "home" / "a").is_symlink()

    def test_tangle_failure_exits_nonzero(self, project_root: Path):
        config = yaml.safe_load((project_root / "tangld.yaml").read_text())
        config["tangle_command"] = [sys.executable, "-c", "import sys; sys.exit(1)"]
        (project_root / "tangld.yaml").write_text(yaml.safe_dump(config))
        (project_root / "src" / "a.org").write_text("x\n")

        result = runner.invoke(app, ["build", "--root", str(project_root)])

        assert result.exit_code == 1
        assert "failed" in result.output

    def test_bad_config_single_diagnostic(self, tmp_path: Path):
        (tmp_path / "tangld.yaml").write_text("install_type: teleport\n")
        result = runner.invoke(app, ["build", "--root", str(tmp_path)])
        assert result.exit_code == 1
        assert "tangld:" in result.output

    def test_clean(self, project_root: Path):
        (project_root / "src" / "a.org").write_text("x\n")
        runner.invoke(app, ["build", "--root", str(project_root)])
        assert (project_root / ".tangld" / "ledger.json").exists()

        result = runner.invoke(app, ["clean", "--root", str(project_root)])

        assert result.exit_code == 0
        assert not (project_root / ".tangld" / "ledger.json").exists()

    def test_check_fresh_root_fails(self, tmp_path: Path):
        result = runner.invoke(app, ["check", "--root", str(tmp_path / "nothing")])
        assert result.exit_code == 1
        assert "missing" in result.output

    def test_check_initialized(self, project_root: Path):
        result = runner.invoke(app, ["check", "--root", str(project_root)])
        assert result.exit_code == 0, result.output

    def test_config_lists_settings(self, project_root: Path):
        result = runner.invoke(app, ["config", "--root", str(project_root)])
        assert result.exit_code == 0
        assert "install_type" in result.output
