"""Modification ledger models.

The ledger maps each absolute source path to the modification time it had
when it was last tangled successfully.  A missing entry means the file has
never been built (or its last build failed) and is therefore stale.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LedgerEntry(BaseModel):
    """A single (source path, last tangled mtime) pair."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    timestamp: float


class Ledger(BaseModel):
    """In-memory view of the persisted modification ledger.

    Updates are functional: ``tangld.core.ledger.record`` returns a new
    ledger and leaves this one untouched.
    """

    model_config = ConfigDict(frozen=True)

    entries: dict[str, float] = {}

    def get(self, source_path: str) -> LedgerEntry | None:
        timestamp = self.entries.get(source_path)
        if timestamp is None:
            return None
        return LedgerEntry(source_path=source_path, timestamp=timestamp)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, source_path: object) -> bool:
        return source_path in self.entries
