"""Canonical serialization and atomic file replacement.

Every file tangld persists (ledger, library cache, ``tangld.yaml``) goes
through ``atomic_write_bytes`` so a crash mid-write leaves the previous
version intact.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from tangld.core.errors import TangldIOError


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write *data* to *path* via a temp file in the same directory + rename."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as exc:
        raise TangldIOError(f"Cannot write {path}: {exc}") from exc

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException as exc:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        if isinstance(exc, OSError):
            raise TangldIOError(f"Cannot write {path}: {exc}") from exc
        raise


def remove_file(path: Path) -> bool:
    """Delete *path* if present.  Returns True if something was removed."""
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise TangldIOError(f"Cannot remove {path}: {exc}") from exc
    return True
