"""Pipeline state machines and run reports."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from tangld.models.tasks import InstallResult, InstallUnit, TangleOutcome


class BuildState(str, Enum):
    """States of a single ``build`` invocation."""

    IDLE = "idle"
    LOADING_CONFIG = "loading_config"
    RUNNING_PRE_HOOKS = "running_pre_hooks"
    LOADING_LIBRARY = "loading_library"
    LOADING_LEDGER = "loading_ledger"
    SCHEDULING = "scheduling"
    AWAITING_COMPLETION = "awaiting_completion"
    RUNNING_POST_HOOKS = "running_post_hooks"
    FAILED = "failed"


class InstallState(str, Enum):
    IDLE = "idle"
    RUNNING_PRE_HOOKS = "running_pre_hooks"
    PLACING = "placing"
    RUNNING_POST_HOOKS = "running_post_hooks"


class CleanState(str, Enum):
    IDLE = "idle"
    REMOVING_CACHE = "removing_cache"
    REMOVING_LEDGER = "removing_ledger"


_BUILD_PATH: list[BuildState] = [
    BuildState.IDLE,
    BuildState.LOADING_CONFIG,
    BuildState.RUNNING_PRE_HOOKS,
    BuildState.LOADING_LIBRARY,
    BuildState.LOADING_LEDGER,
    BuildState.SCHEDULING,
    BuildState.AWAITING_COMPLETION,
    BuildState.RUNNING_POST_HOOKS,
    BuildState.IDLE,
]

# Each state may advance to its successor or drop into FAILED.
# FAILED only returns to IDLE (the next invocation).
VALID_BUILD_TRANSITIONS: dict[BuildState, set[BuildState]] = {
    state: {nxt, BuildState.FAILED}
    for state, nxt in zip(_BUILD_PATH, _BUILD_PATH[1:])
}
VALID_BUILD_TRANSITIONS[BuildState.IDLE] = {BuildState.LOADING_CONFIG}
VALID_BUILD_TRANSITIONS[BuildState.FAILED] = {BuildState.IDLE}

INSTALL_SEQUENCE: list[InstallState] = [
    InstallState.IDLE,
    InstallState.RUNNING_PRE_HOOKS,
    InstallState.PLACING,
    InstallState.RUNNING_POST_HOOKS,
    InstallState.IDLE,
]

CLEAN_SEQUENCE: list[CleanState] = [
    CleanState.IDLE,
    CleanState.REMOVING_CACHE,
    CleanState.REMOVING_LEDGER,
    CleanState.IDLE,
]


class BuildReport(BaseModel):
    """Summary of one build invocation."""

    model_config = ConfigDict(frozen=True)

    dispatched: list[Path] = []
    skipped: list[Path] = []
    outcomes: list[TangleOutcome] = []
    install_queue: list[InstallUnit] = []
    states: list[BuildState] = []

    @property
    def succeeded(self) -> list[TangleOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[TangleOutcome]:
        return [o for o in self.outcomes if not o.succeeded]


class InstallReport(BaseModel):
    """Summary of one install invocation."""

    model_config = ConfigDict(frozen=True)

    results: list[InstallResult] = []
    states: list[InstallState] = []

    @property
    def installed(self) -> list[InstallResult]:
        return [r for r in self.results if r.installed_path is not None]

    @property
    def failed(self) -> list[InstallResult]:
        return [r for r in self.results if r.installed_path is None]


class CheckReport(BaseModel):
    """Result of ``tangld check``."""

    model_config = ConfigDict(frozen=True)

    missing_dirs: list[str] = []
    stow_available: bool = False
    tangle_command_available: bool = False
    ledger_entries: int = 0
    cache_present: bool = False

    @property
    def ok(self) -> bool:
        return not self.missing_dirs
