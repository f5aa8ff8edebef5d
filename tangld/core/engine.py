"""Tangle engine backends.

The tangle algorithm itself lives outside tangld.  The pipeline talks to it
through the ``TangleEngine`` Protocol and never assumes the call is fast,
infallible, or made on the coordinating thread.

Backends:
1. **CommandTangleEngine** — runs an external tangler (Emacs org-babel by
   default) as a subprocess.
2. **CallableTangleEngine** — adapts a plain function; used by embedders and
   the test suite.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from tangld.core.errors import TangleFailure
from tangld.core.fragments import serialize
from tangld.models.config import DEFAULT_TANGLE_COMMAND
from tangld.models.fragments import FragmentLibrary

logger = logging.getLogger(__name__)


@runtime_checkable
class TangleEngine(Protocol):
    """Protocol for tangle backends.

    Any object with a matching ``tangle`` method satisfies this protocol.
    """

    def tangle(
        self, source_path: Path, target_path: Path, library: FragmentLibrary
    ) -> set[Path]:
        """Tangle *source_path* and return the output paths produced.

        Raises
        ------
        TangleFailure
            If the document cannot be tangled.
        """
        ...


class CallableTangleEngine:
    """Wrap ``fn(source, target, library) -> iterable of paths`` as an engine.

    Any exception other than ``TangleFailure`` raised by *fn* is wrapped in
    one.
    """

    def __init__(
        self, fn: Callable[[Path, Path, FragmentLibrary], Sequence[Path] | set[Path]]
    ) -> None:
        self._fn = fn

    def tangle(
        self, source_path: Path, target_path: Path, library: FragmentLibrary
    ) -> set[Path]:
        try:
            return {Path(p) for p in self._fn(source_path, target_path, library)}
        except TangleFailure:
            raise
        except Exception as exc:
            raise TangleFailure(f"{source_path}: {exc}") from exc


class CommandTangleEngine:
    """Run an external tangler once per document.

    Parameters
    ----------
    command:
        Argument template.  ``{source}``, ``{target}`` and ``{library}`` are
        substituted in every argument; ``{library}`` is the path of a
        temporary JSON file holding the serialized fragment library.
    timeout:
        Seconds before the subprocess is abandoned as failed.
    """

    def __init__(
        self,
        command: Sequence[str] | None = None,
        *,
        timeout: float | None = 300.0,
    ) -> None:
        self.command = list(command or DEFAULT_TANGLE_COMMAND)
        self.timeout = timeout

    def available(self) -> bool:
        """Whether the tangler executable can be found on PATH."""
        return bool(self.command) and shutil.which(self.command[0]) is not None

    def tangle(
        self, source_path: Path, target_path: Path, library: FragmentLibrary
    ) -> set[Path]:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="tangld-") as tmp:
            library_file = Path(tmp) / "library.json"
            library_file.write_bytes(serialize(library))
            argv = [
                arg.format(
                    source=source_path, target=target_path, library=library_file
                )
                for arg in self.command
            ]
            logger.debug("Running tangler: %s", argv)
            try:
                proc = subprocess.run(
                    argv,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                )
            except FileNotFoundError as exc:
                raise TangleFailure(f"Tangler not found: {argv[0]}") from exc
            except subprocess.TimeoutExpired as exc:
                raise TangleFailure(
                    f"{source_path}: tangler timed out after {self.timeout}s"
                ) from exc

        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout).strip().splitlines()
            raise TangleFailure(
                f"{source_path}: tangler exited {proc.returncode}"
                + (f": {detail[-1]}" if detail else "")
            )
        return {target_path} if target_path.exists() else set()
