"""tangld data models — all Pydantic v2, frozen where immutable."""

from tangld.models.config import (
    DEFAULT_DIRS,
    LOGICAL_DIRS,
    InstallType,
    ProjectConfig,
)
from tangld.models.fragments import Fragment, FragmentLibrary
from tangld.models.layout import ProjectDirs
from tangld.models.ledger import Ledger, LedgerEntry
from tangld.models.pipeline import (
    CLEAN_SEQUENCE,
    INSTALL_SEQUENCE,
    VALID_BUILD_TRANSITIONS,
    BuildReport,
    BuildState,
    CheckReport,
    CleanState,
    InstallReport,
    InstallState,
)
from tangld.models.tasks import (
    InstallResult,
    InstallUnit,
    TangleOutcome,
    TangleTask,
    TaskStatus,
)

__all__ = [
    # config
    "DEFAULT_DIRS",
    "LOGICAL_DIRS",
    "InstallType",
    "ProjectConfig",
    # layout
    "ProjectDirs",
    # ledger
    "Ledger",
    "LedgerEntry",
    # fragments
    "Fragment",
    "FragmentLibrary",
    # tasks
    "TaskStatus",
    "TangleTask",
    "TangleOutcome",
    "InstallUnit",
    "InstallResult",
    # pipeline
    "BuildState",
    "InstallState",
    "CleanState",
    "VALID_BUILD_TRANSITIONS",
    "INSTALL_SEQUENCE",
    "CLEAN_SEQUENCE",
    "BuildReport",
    "InstallReport",
    "CheckReport",
]
