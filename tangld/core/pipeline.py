"""Build pipeline — the coordinator for ``build``, ``install`` and ``clean``.

The pipeline wires together the project layout, the fragment library cache,
the modification ledger, the tangle scheduler, the install strategy and the
hook runner.  ``build`` walks an explicit state machine
(``VALID_BUILD_TRANSITIONS``); ``install`` and ``clean`` follow their own
linear sequences and never share the build state.

Fatal errors (unreadable config, invalid layout) move the build to FAILED
and propagate.  Per-file tangle and install failures are collected in the
returned reports instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from tangld.config import TangldSettings
from tangld.core import fragments as fragment_ops
from tangld.core import layout as layout_ops
from tangld.core import ledger as ledger_ops
from tangld.core.engine import CommandTangleEngine, TangleEngine
from tangld.core.errors import InvalidTransitionError, TangldError
from tangld.core.hooks import HookPhase, HookRunner, PipelineHooks
from tangld.core.install import InstallStrategy, StowStrategy, strategy_for
from tangld.core.project import (
    config_path,
    default_root,
    load_project_config,
    write_project_config,
)
from tangld.core.scheduler import TangleScheduler
from tangld.models.config import ProjectConfig
from tangld.models.fragments import FragmentLibrary
from tangld.models.layout import ProjectDirs
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
from tangld.models.tasks import InstallResult, InstallUnit, TaskStatus

logger = logging.getLogger(__name__)


def discover_sources(source_dir: Path, pattern: str = "**/*.org") -> list[Path]:
    """Recursively enumerate literate documents under *source_dir*."""
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        return []
    return sorted(p for p in source_dir.glob(pattern) if p.is_file())


def discover_artifacts(build_dir: Path) -> list[Path]:
    """Every file (or symlink) in the build tree, in path order."""
    build_dir = Path(build_dir)
    if not build_dir.is_dir():
        return []
    return sorted(p for p in build_dir.rglob("*") if p.is_file() or p.is_symlink())


class BuildPipeline:
    """Coordinates builds, installs and cleans for one project.

    Parameters
    ----------
    root:
        Project root holding ``tangld.yaml``.  Defaults to
        ``settings.project_root`` and then ``~/.tangld``.
    config:
        Use this configuration instead of loading ``tangld.yaml``.
    settings:
        Process settings (worker pool size, tangle timeout).
    engine:
        Tangle backend.  Defaults to a ``CommandTangleEngine`` built from
        ``config.tangle_command``.
    hooks:
        Pre/post hooks, fixed for the lifetime of the pipeline.
    """

    def __init__(
        self,
        root: Path | str | None = None,
        *,
        config: ProjectConfig | None = None,
        settings: TangldSettings | None = None,
        engine: TangleEngine | None = None,
        hooks: PipelineHooks | None = None,
    ) -> None:
        self.settings = settings or TangldSettings()
        self.root = Path(root or self.settings.project_root or default_root()).expanduser()
        self._config = config
        self._engine = engine
        self._config_injected = config is not None
        self._engine_injected = engine is not None
        self.hook_runner = HookRunner(hooks)

        self.state = BuildState.IDLE
        self.states: list[BuildState] = [BuildState.IDLE]
        self.install_states: list[InstallState] = []
        self.clean_states: list[CleanState] = []
        self.install_queue: list[InstallUnit] = []

    # ------------------------------------------------------------------
    # Configuration and layout
    # ------------------------------------------------------------------

    @property
    def config(self) -> ProjectConfig:
        """The project configuration, loaded on first use and by every build."""
        if self._config is None:
            self._config = load_project_config(self.root)
        return self._config

    def reload_config(self) -> ProjectConfig:
        """Re-read ``tangld.yaml`` unless a configuration was passed in.

        The default engine is rebuilt too, since it is derived from
        ``tangle_command``.
        """
        if not self._config_injected:
            self._config = None
        if not self._engine_injected:
            self._engine = None
        return self.config

    @property
    def dirs(self) -> ProjectDirs:
        return layout_ops.resolve(self.config.dirs, override_root=self.root)

    @property
    def engine(self) -> TangleEngine:
        if self._engine is None:
            self._engine = CommandTangleEngine(
                self.config.tangle_command,
                timeout=self.settings.tangle_timeout_seconds,
            )
        return self._engine

    def library_dirs(self, dirs: ProjectDirs) -> list[Path]:
        """The lib directory first, then configured shared directories."""
        extra = layout_ops.resolve_extra(self.config.library_dirs, dirs.root)
        return [dirs.lib, *extra]

    def strategy(self, dirs: ProjectDirs) -> InstallStrategy:
        return strategy_for(self.config, dirs)

    def library_cache(self, dirs: ProjectDirs) -> fragment_ops.LibraryCache | None:
        """The project's library cache, or None when caching is disabled."""
        if not self.config.use_cache:
            return None
        return fragment_ops.LibraryCache(self.config.cache_path(dirs.root))

    def load_library(self, dirs: ProjectDirs, *, refresh: bool = False) -> FragmentLibrary:
        return fragment_ops.load_effective(
            self.library_dirs(dirs), self.library_cache(dirs), refresh=refresh
        )

    # ------------------------------------------------------------------
    # Build state machine
    # ------------------------------------------------------------------

    def _transition(self, target: BuildState) -> None:
        allowed = VALID_BUILD_TRANSITIONS.get(self.state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot move build from {self.state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.debug("build: %s -> %s", self.state.value, target.value)
        self.state = target
        self.states.append(target)

    def _fail(self) -> None:
        """Enter FAILED; reachable from every state."""
        logger.debug("build: %s -> %s", self.state.value, BuildState.FAILED.value)
        self.state = BuildState.FAILED
        self.states.append(BuildState.FAILED)

    def build(self, *, force: bool = False, refresh_library: bool = False) -> BuildReport:
        """Tangle every stale source document (every document if forced).

        Lifecycle:
        1. Re-read config and resolve the layout (fatal on error)
        2. Run pre-build hooks
        3. Load the fragment library (cache or directories)
        4. Load the ledger
        5. Dispatch tangle tasks for stale sources
        6. Wait for every task, record successes, flush the ledger and,
           if the library was rebuilt, the library cache
        7. Run post-build hooks

        Returns a ``BuildReport``; per-file failures are listed in it.
        """
        if self.state == BuildState.FAILED:
            self._transition(BuildState.IDLE)
        self.states = [self.state]
        scheduler: TangleScheduler | None = None

        try:
            self._transition(BuildState.LOADING_CONFIG)
            config = self.reload_config()
            dirs = self.dirs

            self._transition(BuildState.RUNNING_PRE_HOOKS)
            self.hook_runner.run(HookPhase.PRE_BUILD)

            self._transition(BuildState.LOADING_LIBRARY)
            cache = self.library_cache(dirs)
            library, rebuilt = fragment_ops.read_through(
                self.library_dirs(dirs), cache, refresh=refresh_library
            )

            self._transition(BuildState.LOADING_LEDGER)
            ledger_path = config.ledger_path(dirs.root)
            ledger = ledger_ops.load(ledger_path)

            self._transition(BuildState.SCHEDULING)
            sources = discover_sources(dirs.source, config.source_glob)
            scheduler = TangleScheduler(
                self.engine,
                self.strategy(dirs),
                max_workers=self.settings.max_workers,
            )
            handles = scheduler.schedule(
                sources, ledger, library, force_all=force or not config.lazy
            )
            dispatched = [h.task.source_path for h in handles]
            logger.info(
                "Dispatched %d of %d source documents", len(dispatched), len(sources)
            )

            self._transition(BuildState.AWAITING_COMPLETION)
            ledger, outcomes, install_queue = scheduler.join(ledger)
            ledger_ops.flush(ledger_ops.prune(ledger, sources), ledger_path)
            if rebuilt and cache is not None:
                fragment_ops.write_back(cache, library)

            self._transition(BuildState.RUNNING_POST_HOOKS)
            self.hook_runner.run(HookPhase.POST_BUILD)

            self._transition(BuildState.IDLE)
        except BaseException:
            if scheduler is not None:
                scheduler.shutdown()
            self._fail()
            raise

        self.install_queue = install_queue
        dispatched_set = set(dispatched)
        return BuildReport(
            dispatched=dispatched,
            skipped=[s for s in sources if s not in dispatched_set],
            outcomes=outcomes,
            install_queue=install_queue,
            states=list(self.states),
        )

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install(self, units: Iterable[InstallUnit] | None = None) -> InstallReport:
        """Place built artifacts with the configured strategy.

        With no *units*, every artifact currently in the build directory is
        installed.  Each failure is recorded and the rest still proceed.
        """
        self.install_states = [INSTALL_SEQUENCE[0]]
        dirs = self.dirs
        strategy = self.strategy(dirs)
        if units is None:
            units = [
                InstallUnit(artifact_path=p, install_type=strategy.install_type)
                for p in discover_artifacts(dirs.build)
            ]

        self.install_states.append(InstallState.RUNNING_PRE_HOOKS)
        self.hook_runner.run(HookPhase.PRE_INSTALL)

        self.install_states.append(InstallState.PLACING)
        results: list[InstallResult] = []
        for unit in units:
            try:
                placed = strategy.place(unit.artifact_path)
            except (TangldError, OSError) as exc:
                logger.warning("Install failed for %s: %s", unit.artifact_path, exc)
                results.append(
                    InstallResult(
                        artifact_path=unit.artifact_path,
                        status=TaskStatus.FAILED,
                        reason=str(exc),
                    )
                )
                continue
            logger.debug("Installed %s -> %s", unit.artifact_path, placed)
            results.append(
                InstallResult(
                    artifact_path=unit.artifact_path,
                    status=TaskStatus.SUCCEEDED,
                    installed_path=placed,
                )
            )

        self.install_states.append(InstallState.RUNNING_POST_HOOKS)
        self.hook_runner.run(HookPhase.POST_INSTALL)
        self.install_states.append(InstallState.IDLE)
        return InstallReport(results=results, states=list(self.install_states))

    # ------------------------------------------------------------------
    # Clean, init, check
    # ------------------------------------------------------------------

    def clean(self) -> list[Path]:
        """Remove the library cache, then the ledger.  Returns what was removed."""
        self.clean_states = [CLEAN_SEQUENCE[0]]
        root = self.dirs.root
        removed: list[Path] = []

        self.clean_states.append(CleanState.REMOVING_CACHE)
        cache_path = self.config.cache_path(root)
        if fragment_ops.LibraryCache(cache_path).clear():
            removed.append(cache_path)

        self.clean_states.append(CleanState.REMOVING_LEDGER)
        ledger_path = self.config.ledger_path(root)
        if ledger_ops.remove(ledger_path):
            removed.append(ledger_path)

        self.clean_states.append(CleanState.IDLE)
        return removed

    def init(self) -> set[Path]:
        """Create the project directories and write ``tangld.yaml`` if absent."""
        dirs = self.dirs
        created = layout_ops.materialize(dirs)
        if not config_path(dirs.root).exists():
            write_project_config(dirs.root, self.config)
            created.add(config_path(dirs.root))
        return created

    def check(self) -> CheckReport:
        """Report on layout health and external tool availability."""
        dirs = self.dirs
        engine = self.engine
        tangle_available = (
            engine.available() if isinstance(engine, CommandTangleEngine) else True
        )
        return CheckReport(
            missing_dirs=layout_ops.missing(dirs),
            stow_available=StowStrategy(dirs, self.config.stow_command).available(),
            tangle_command_available=tangle_available,
            ledger_entries=len(ledger_ops.load(self.config.ledger_path(dirs.root))),
            cache_present=fragment_ops.LibraryCache(
                self.config.cache_path(dirs.root)
            ).exists(),
        )
