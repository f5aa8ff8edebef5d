"""Tangle scheduler — lazy staleness checks and non-blocking dispatch.

``schedule`` returns as soon as every stale document has been submitted to
the worker pool.  Workers never touch the ledger: each completion is pushed
onto a queue, and ``join`` (the build's barrier) drains that queue on the
coordinating thread, applying ledger updates one at a time.

A failed document keeps its old ledger entry, so it stays stale and is
retried on the next build.  There is no cancellation; an interrupted build
simply never records the documents that had not completed.
"""

from __future__ import annotations

import logging
import queue
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from tangld.core import ledger as ledger_ops
from tangld.core.engine import TangleEngine
from tangld.core.errors import TangleFailure
from tangld.core.install import InstallStrategy
from tangld.models.fragments import FragmentLibrary
from tangld.models.ledger import Ledger
from tangld.models.tasks import (
    InstallUnit,
    TangleOutcome,
    TangleTask,
    TaskStatus,
)

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


class TangleHandle:
    """A dispatched ``TangleTask`` and the future of its outcome."""

    def __init__(self, task: TangleTask, future: Future[TangleOutcome]) -> None:
        self.task = task
        self.future = future

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: float | None = None) -> TangleOutcome:
        return self.future.result(timeout=timeout)

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"TangleHandle(source={str(self.task.source_path)!r}, {state})"


class TangleScheduler:
    """Dispatches tangle work off the calling thread.

    Parameters
    ----------
    engine:
        The tangle backend.
    strategy:
        The active install strategy; supplies the source -> build path
        mapping and tags queued artifacts with its install type.
    max_workers:
        Upper bound on concurrent workers.  ``None`` gives every dispatched
        task its own worker.
    """

    def __init__(
        self,
        engine: TangleEngine,
        strategy: InstallStrategy,
        *,
        max_workers: int | None = None,
    ) -> None:
        self._engine = engine
        self._strategy = strategy
        self._max_workers = max_workers
        self._completions: queue.Queue[TangleHandle] = queue.Queue()
        self._pending: list[TangleHandle] = []
        self._executors: list[ThreadPoolExecutor] = []

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def schedule(
        self,
        source_files: Iterable[Path],
        ledger: Ledger,
        library: FragmentLibrary,
        *,
        force_all: bool = False,
    ) -> list[TangleHandle]:
        """Dispatch a task for every source that is stale (or all if forced).

        Non-blocking.  Returns the handles of the tasks dispatched by this
        call, in dispatch order.
        """
        tasks: list[TangleTask] = []
        for source in sorted({Path(p) for p in source_files}):
            if not force_all and not ledger_ops.is_stale(ledger, source):
                logger.debug("Up to date, skipping %s", source)
                continue
            try:
                mtime = source.stat().st_mtime
            except OSError as exc:
                logger.warning("Cannot stat %s, skipping: %s", source, exc)
                continue
            tasks.append(
                TangleTask(
                    source_path=source,
                    target_path=self._strategy.build_target(source),
                    library=library,
                    force=force_all,
                    mtime=mtime,
                )
            )

        if not tasks:
            return []

        workers = self._max_workers or len(tasks)
        executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="tangld-tangle"
        )
        self._executors.append(executor)

        handles: list[TangleHandle] = []
        for task in tasks:
            handle = TangleHandle(task, executor.submit(self._run, task))
            handle.future.add_done_callback(
                lambda _future, handle=handle: self._completions.put(handle)
            )
            logger.debug("Dispatched %s -> %s", task.source_path, task.target_path)
            handles.append(handle)
        self._pending.extend(handles)
        return handles

    def _run(self, task: TangleTask) -> TangleOutcome:
        """Worker body.  Returns an outcome for any ordinary exception."""
        try:
            outputs = self._engine.tangle(task.source_path, task.target_path, task.library)
        except TangleFailure as exc:
            reason = str(exc)
        except Exception as exc:
            reason = _describe(exc)
        else:
            return TangleOutcome(
                source_path=task.source_path,
                status=TaskStatus.SUCCEEDED,
                mtime=task.mtime,
                outputs=sorted(Path(p) for p in outputs),
            )
        return TangleOutcome(
            source_path=task.source_path,
            status=TaskStatus.FAILED,
            mtime=task.mtime,
            reason=reason,
        )

    @staticmethod
    def _collect(handle: TangleHandle) -> TangleOutcome:
        """The outcome of a finished task.

        A worker killed by a ``BaseException`` (``SystemExit`` from a tangle
        callable, for instance) leaves no outcome of its own; it is reported
        as a failure so the barrier still sees exactly one outcome per task.
        """
        exc = handle.future.exception()
        if exc is None:
            return handle.future.result()
        return TangleOutcome(
            source_path=handle.task.source_path,
            status=TaskStatus.FAILED,
            mtime=handle.task.mtime,
            reason=_describe(exc),
        )

    # ------------------------------------------------------------------
    # Barrier
    # ------------------------------------------------------------------

    @property
    def pending(self) -> int:
        """Number of dispatched tasks not yet collected by ``join``."""
        return len(self._pending)

    def join(
        self, ledger: Ledger
    ) -> tuple[Ledger, list[TangleOutcome], list[InstallUnit]]:
        """Wait for every dispatched task and fold the outcomes in.

        Outcomes are applied in completion order on the calling thread.
        Returns the updated ledger, the outcomes, and the artifacts queued
        for install.
        """
        outcomes: list[TangleOutcome] = []
        install_queue: list[InstallUnit] = []
        for _ in range(len(self._pending)):
            outcome = self._collect(self._completions.get())
            outcomes.append(outcome)
            if outcome.succeeded:
                ledger = ledger_ops.record(ledger, outcome.source_path, outcome.mtime)
                install_queue.extend(
                    InstallUnit(
                        artifact_path=output,
                        install_type=self._strategy.install_type,
                    )
                    for output in outcome.outputs
                )
                logger.debug("Tangled %s", outcome.source_path)
            else:
                logger.warning("Tangle failed for %s: %s", outcome.source_path, outcome.reason)

        self._pending.clear()
        for executor in self._executors:
            executor.shutdown(wait=True)
        self._executors.clear()
        return ledger, outcomes, install_queue

    def shutdown(self) -> None:
        """Release worker threads without collecting outcomes."""
        for executor in self._executors:
            executor.shutdown(wait=False)
        self._executors.clear()
