"""Units of tangle and install work."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from tangld.models.config import InstallType
from tangld.models.fragments import FragmentLibrary


class TaskStatus(str, Enum):
    """Terminal outcome of a dispatched unit of work."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TangleTask(BaseModel):
    """One source document to tangle.  Immutable once dispatched."""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    target_path: Path
    library: FragmentLibrary
    force: bool = False
    mtime: float  # source mtime sampled at dispatch, recorded on success


class TangleOutcome(BaseModel):
    """Terminal state of a ``TangleTask``: Succeeded(outputs) or Failed(reason)."""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    status: TaskStatus
    mtime: float
    outputs: list[Path] = []
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == TaskStatus.SUCCEEDED


class InstallUnit(BaseModel):
    """A built artifact waiting to be placed.  Consumed exactly once."""

    model_config = ConfigDict(frozen=True)

    artifact_path: Path
    install_type: InstallType


class InstallResult(BaseModel):
    """Outcome of placing one ``InstallUnit``."""

    model_config = ConfigDict(frozen=True)

    artifact_path: Path
    status: TaskStatus
    installed_path: Path | None = None
    reason: str = ""
