"""Reusable named code fragments."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Fragment(BaseModel):
    """A named source block that documents may reference by name."""

    model_config = ConfigDict(frozen=True)

    name: str
    language: str = ""
    body: str
    ordinal: int = 0  # discovery index across all scanned directories
    origin: str = ""  # file the fragment was read from


class FragmentLibrary(BaseModel):
    """Mapping from fragment name to ``Fragment``; names are unique."""

    model_config = ConfigDict(frozen=True)

    fragments: dict[str, Fragment] = {}

    def __getitem__(self, name: str) -> Fragment:
        return self.fragments[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fragments

    def __len__(self) -> int:
        return len(self.fragments)

    def names(self) -> list[str]:
        """Return fragment names ordered by discovery ordinal."""
        return [
            f.name for f in sorted(self.fragments.values(), key=lambda f: f.ordinal)
        ]
