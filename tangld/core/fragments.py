"""Fragment library assembly and the read-through library cache.

Library directories hold literate documents whose named source blocks are
reusable fragments::

    #+name: greeting
    #+begin_src sh
    echo "hello"
    #+end_src

Directories are scanned in order and the first definition of a name wins,
so the project ``lib`` directory overrides any shared library directory
listed after it.  A conflict is logged, never an error.

The cache is a canonical JSON blob of the library.  It is only invalidated
explicitly (``tangld clean`` or a forced refresh); a blob that cannot be
decoded is treated as a miss.
"""

from __future__ import annotations

import json
import logging
import re
import textwrap
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from tangld.core.errors import CacheCorrupt, TangldIOError
from tangld.core.storage import atomic_write_bytes, canonical_json_bytes, remove_file
from tangld.models.fragments import Fragment, FragmentLibrary

logger = logging.getLogger(__name__)

CACHE_FORMAT = 1
FRAGMENT_GLOB = "*.org"

_NAME_RE = re.compile(r"^\s*#\+name:\s*(?P<name>\S+)\s*$", re.IGNORECASE)
_BEGIN_RE = re.compile(r"^\s*#\+begin_src(?:\s+(?P<lang>\S+))?.*$", re.IGNORECASE)
_END_RE = re.compile(r"^\s*#\+end_src\s*$", re.IGNORECASE)
_KEYWORD_RE = re.compile(r"^\s*#\+\w+:", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_fragments(text: str, origin: str = "") -> list[Fragment]:
    """Extract named source blocks from one document, in document order.

    Unnamed blocks are ignored.  Keyword lines (``#+header:`` etc.) may sit
    between ``#+name:`` and ``#+begin_src``.  Ordinals are local to the
    document; ``build_from_directories`` renumbers them globally.
    """
    fragments: list[Fragment] = []
    pending_name: str | None = None
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i]
        name_match = _NAME_RE.match(line)
        if name_match:
            pending_name = name_match.group("name")
            i += 1
            continue

        begin_match = _BEGIN_RE.match(line)
        if begin_match:
            body: list[str] = []
            i += 1
            while i < len(lines) and not _END_RE.match(lines[i]):
                body.append(lines[i])
                i += 1
            if pending_name is not None:
                fragments.append(
                    Fragment(
                        name=pending_name,
                        language=begin_match.group("lang") or "",
                        body=textwrap.dedent("\n".join(body)),
                        ordinal=len(fragments),
                        origin=origin,
                    )
                )
            pending_name = None
            i += 1  # skip #+end_src
            continue

        if pending_name is not None and line.strip() and not _KEYWORD_RE.match(line):
            # A name only attaches to the block immediately following it.
            pending_name = None
        i += 1
    return fragments


def build_from_directories(dirs: Sequence[Path]) -> FragmentLibrary:
    """Assemble a library from *dirs*, earliest directory winning conflicts."""
    fragments: dict[str, Fragment] = {}
    ordinal = 0
    for directory in dirs:
        directory = Path(directory)
        if not directory.is_dir():
            logger.debug("Library directory %s does not exist; skipping", directory)
            continue
        for doc in sorted(directory.rglob(FRAGMENT_GLOB)):
            if not doc.is_file():
                continue
            try:
                text = doc.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Cannot read library document %s: %s", doc, exc)
                continue
            for fragment in parse_fragments(text, origin=str(doc)):
                if fragment.name in fragments:
                    logger.debug(
                        "Fragment %r in %s shadowed by %s",
                        fragment.name,
                        doc,
                        fragments[fragment.name].origin,
                    )
                    continue
                fragments[fragment.name] = fragment.model_copy(update={"ordinal": ordinal})
                ordinal += 1
    logger.debug("Assembled %d fragments from %d directories", len(fragments), len(dirs))
    return FragmentLibrary(fragments=fragments)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def serialize(library: FragmentLibrary) -> bytes:
    """Encode *library* as a canonical JSON cache blob."""
    payload = {"format": CACHE_FORMAT, **library.model_dump(mode="json")}
    return canonical_json_bytes(payload)


def deserialize(blob: bytes | str) -> FragmentLibrary:
    """Decode a cache blob produced by ``serialize``.

    Raises
    ------
    CacheCorrupt
        If the blob is not valid JSON, has the wrong format version, or
        does not validate as a library.
    """
    if isinstance(blob, bytes):
        try:
            blob = blob.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CacheCorrupt(f"Cache blob is not UTF-8: {exc}") from exc
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise CacheCorrupt(f"Cache blob is not JSON: {exc}") from exc

    if not isinstance(data, dict) or data.get("format") != CACHE_FORMAT:
        raise CacheCorrupt("Cache blob has an unknown format")
    data.pop("format")
    try:
        return FragmentLibrary.model_validate(data)
    except ValidationError as exc:
        raise CacheCorrupt(f"Cache blob failed validation: {exc}") from exc


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class LibraryCache:
    """On-disk cache blob for one project's fragment library.

    Parameters
    ----------
    path:
        Location of the blob.  Written atomically.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> FragmentLibrary | None:
        """Return the cached library, or None on a miss or corrupt blob."""
        try:
            blob = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Cannot read library cache %s: %s", self.path, exc)
            return None
        try:
            return deserialize(blob)
        except CacheCorrupt as exc:
            logger.warning("Discarding corrupt library cache %s: %s", self.path, exc)
            return None

    def write(self, library: FragmentLibrary) -> None:
        atomic_write_bytes(self.path, serialize(library))
        logger.debug("Wrote %d fragments to cache %s", len(library), self.path)

    def clear(self) -> bool:
        return remove_file(self.path)


def read_through(
    library_dirs: Sequence[Path],
    cache: LibraryCache | None,
    *,
    refresh: bool = False,
) -> tuple[FragmentLibrary, bool]:
    """Load the library without writing anything.

    Returns the library and whether it was rebuilt from *library_dirs*
    (a cache miss, a corrupt blob, a forced *refresh*, or caching off).
    """
    if cache is not None and not refresh:
        cached = cache.read()
        if cached is not None:
            logger.debug("Loaded %d fragments from cache %s", len(cached), cache.path)
            return cached, False
    return build_from_directories(library_dirs), True


def write_back(cache: LibraryCache, library: FragmentLibrary) -> None:
    """Store a rebuilt library; a failed write is logged, not raised."""
    try:
        cache.write(library)
    except TangldIOError as exc:
        logger.warning("Cannot write library cache: %s", exc)


def load_effective(
    library_dirs: Sequence[Path],
    cache: LibraryCache | None,
    *,
    refresh: bool = False,
) -> FragmentLibrary:
    """Read-through library load.

    With a cache (caching enabled) and no forced *refresh*, a readable blob
    is returned as-is.  Otherwise the library is rebuilt from
    *library_dirs* and, when caching is enabled, the blob is overwritten.
    """
    library, rebuilt = read_through(library_dirs, cache, refresh=refresh)
    if rebuilt and cache is not None:
        write_back(cache, library)
    return library
