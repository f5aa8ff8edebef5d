"""Error taxonomy for tangld.

Per-file failures (``TangleFailure``, ``InstallConflict``,
``UnsupportedOperation``, ``TangldIOError``) are isolated by the pipeline and
recorded in its reports.  ``ConfigError`` and ``InvalidLayout`` are fatal for
the whole invocation.  ``CacheCorrupt`` is always downgraded to a cache miss.
"""

from __future__ import annotations


class TangldError(RuntimeError):
    """Base class for every error raised by tangld."""


class ConfigError(TangldError):
    """Raised when the project configuration cannot be read or validated."""


class InvalidLayout(TangldError):
    """Raised when the project directories cannot be resolved."""


class TangldIOError(TangldError, OSError):
    """Raised when a filesystem operation required by the pipeline fails."""


class InstallConflict(TangldError):
    """Raised when an install would overwrite something it does not own."""


class UnsupportedOperation(TangldError):
    """Raised when an install strategy's external tool is unavailable."""


class TangleFailure(TangldError):
    """Raised by a tangle engine when a document cannot be tangled."""


class CacheCorrupt(TangldError):
    """Raised when a fragment library cache blob cannot be decoded."""


class InvalidTransitionError(TangldError):
    """Raised when the build state machine is driven out of order."""
