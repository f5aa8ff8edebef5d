"""Tests for tangle engine backends."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from tangld.core.engine import CallableTangleEngine, CommandTangleEngine, TangleEngine
from tangld.core.errors import TangleFailure
from tangld.models.fragments import Fragment, FragmentLibrary

# Copies {source} to {target} and appends the fragment names found in {library}.
_COPY_SCRIPT = (
    "import json, sys, pathlib;"
    "src, dst, lib = map(pathlib.Path, sys.argv[1:4]);"
    "names = sorted(json.loads(lib.read_text())['fragments']);"
    "dst.write_text(src.read_text() + ','.join(names))"
)


@pytest.fixture
def library() -> FragmentLibrary:
    return FragmentLibrary(fragments={"foo": Fragment(name="foo", body="x")})


class TestCallableTangleEngine:
    def test_satisfies_protocol(self):
        assert isinstance(CallableTangleEngine(lambda s, t, l: []), TangleEngine)

    def test_returns_paths(self, tmp_path: Path, library):
        engine = CallableTangleEngine(lambda s, t, l: [str(t)])
        assert engine.tangle(tmp_path / "a.org", tmp_path / "a", library) == {tmp_path / "a"}

    def test_wraps_errors(self, tmp_path: Path, library):
        def broken(s, t, l):
            raise ValueError("bad block")

        with pytest.raises(TangleFailure, match="bad block"):
            CallableTangleEngine(broken).tangle(tmp_path / "a.org", tmp_path / "a", library)


class TestCommandTangleEngine:
    def test_satisfies_protocol(self):
        assert isinstance(CommandTangleEngine(), TangleEngine)

    def test_runs_command_with_substitutions(self, tmp_path: Path, library):
        source = tmp_path / "a.org"
        source.write_text("body:")
        target = tmp_path / "build" / "a"
        engine = CommandTangleEngine(
            [sys.executable, "-c", _COPY_SCRIPT, "{source}", "{target}", "{library}"]
        )

        outputs = engine.tangle(source, target, library)

        assert outputs == {target}
        assert target.read_text() == "body:foo"

    def test_nonzero_exit_is_failure(self, tmp_path: Path, library):
        engine = CommandTangleEngine(
            [sys.executable, "-c", "import sys; sys.stderr.write('no blocks'); sys.exit(3)"]
        )
        with pytest.raises(TangleFailure, match="exited 3: no blocks"):
            engine.tangle(tmp_path / "a.org", tmp_path / "a", library)

    def test_missing_executable_is_failure(self, tmp_path: Path, library):
        engine = CommandTangleEngine(["tangld-no-such-tangler"])
        assert engine.available() is False
        with pytest.raises(TangleFailure, match="not found"):
            engine.tangle(tmp_path / "a.org", tmp_path / "a", library)

    def test_no_output_when_target_missing(self, tmp_path: Path, library):
        engine = CommandTangleEngine([sys.executable, "-c", "pass"])
        assert engine.tangle(tmp_path / "a.org", tmp_path / "a", library) == set()

    def test_default_command_is_emacs(self):
        assert CommandTangleEngine().command[0] == "emacs"
