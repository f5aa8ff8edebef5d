"""Modification ledger — lazy-tangle bookkeeping.

The ledger is loaded once per build, held in memory while tangle work is in
flight, and flushed once at the end with atomic replace semantics.  All
updates are functional so the coordinator can hand snapshots to workers
without sharing mutable state.

Persisted format (JSON)::

    {"entries": {"/abs/path/to/doc.org": 1718000000.123, ...}}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from tangld.core.errors import TangldIOError
from tangld.core.storage import atomic_write_bytes, canonical_json_bytes, remove_file
from tangld.models.ledger import Ledger

logger = logging.getLogger(__name__)


def _key(source_path: Path | str) -> str:
    return str(Path(source_path).absolute())


def load(path: Path) -> Ledger:
    """Parse a persisted ledger; a missing file yields an empty ledger.

    An unreadable or malformed ledger is also treated as empty: every
    source then looks stale, which only costs an unnecessary rebuild.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return Ledger()
    except OSError as exc:
        raise TangldIOError(f"Cannot read ledger {path}: {exc}") from exc

    try:
        return Ledger.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        logger.warning("Ledger %s is unreadable (%s); starting empty", path, exc)
        return Ledger()


def is_stale(ledger: Ledger, source_path: Path | str) -> bool:
    """True if *source_path* has no entry or changed after it was recorded."""
    recorded = ledger.entries.get(_key(source_path))
    if recorded is None:
        return True
    try:
        mtime = Path(source_path).stat().st_mtime
    except FileNotFoundError:
        # Nothing to rebuild from; a vanished source is never stale.
        return False
    return mtime > recorded


def record(ledger: Ledger, source_path: Path | str, timestamp: float) -> Ledger:
    """Return a new ledger with *source_path* recorded at *timestamp*."""
    entries = dict(ledger.entries)
    entries[_key(source_path)] = float(timestamp)
    return Ledger(entries=entries)


def forget(ledger: Ledger, source_path: Path | str) -> Ledger:
    """Return a new ledger without an entry for *source_path*."""
    entries = dict(ledger.entries)
    entries.pop(_key(source_path), None)
    return Ledger(entries=entries)


def prune(ledger: Ledger, existing: Iterable[Path | str]) -> Ledger:
    """Drop entries whose source is not in *existing*."""
    keep = {_key(p) for p in existing}
    return Ledger(entries={k: v for k, v in ledger.entries.items() if k in keep})


def flush(ledger: Ledger, path: Path) -> None:
    """Atomically persist *ledger* to *path*."""
    atomic_write_bytes(Path(path), canonical_json_bytes(ledger.model_dump(mode="json")))
    logger.debug("Flushed %d ledger entries to %s", len(ledger), path)


def remove(path: Path) -> bool:
    """Delete the persisted ledger.  Returns True if a file was removed."""
    return remove_file(Path(path))
