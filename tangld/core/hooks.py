"""Pre/post phase hooks.

Hooks are zero-argument callables registered when the pipeline is built.
They run in registration order; a failing hook is logged and recorded, and
the remaining hooks (and the surrounding phase) carry on regardless.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

Hook = Callable[[], object]


class HookPhase(str, Enum):
    """Points in the pipeline where hooks fire."""

    PRE_BUILD = "pre_build"
    POST_BUILD = "post_build"
    PRE_INSTALL = "pre_install"
    POST_INSTALL = "post_install"


class HookRecord(BaseModel):
    """Immutable record of one hook invocation."""

    model_config = ConfigDict(frozen=True)

    hook_name: str
    phase: HookPhase
    ok: bool = True
    error: str = ""


def _hook_name(hook: Hook) -> str:
    return getattr(hook, "__qualname__", None) or getattr(hook, "__name__", None) or repr(hook)


class PipelineHooks:
    """Ordered hook lists owned by one pipeline instance.

    Register everything up front; the pipeline only reads these lists
    while it runs.
    """

    def __init__(
        self,
        *,
        pre_build: Iterable[Hook] = (),
        post_build: Iterable[Hook] = (),
        pre_install: Iterable[Hook] = (),
        post_install: Iterable[Hook] = (),
    ) -> None:
        self._hooks: dict[HookPhase, tuple[Hook, ...]] = {
            HookPhase.PRE_BUILD: tuple(pre_build),
            HookPhase.POST_BUILD: tuple(post_build),
            HookPhase.PRE_INSTALL: tuple(pre_install),
            HookPhase.POST_INSTALL: tuple(post_install),
        }

    def for_phase(self, phase: HookPhase) -> tuple[Hook, ...]:
        return self._hooks[phase]

    def __repr__(self) -> str:
        counts = ", ".join(f"{p.value}={len(h)}" for p, h in self._hooks.items())
        return f"PipelineHooks({counts})"


class HookRunner:
    """Runs hook lists and keeps a history of every invocation."""

    def __init__(self, hooks: PipelineHooks | None = None) -> None:
        self.hooks = hooks or PipelineHooks()
        self._records: list[HookRecord] = []

    def run(self, phase: HookPhase) -> list[HookRecord]:
        """Invoke the hooks registered for *phase*, in order."""
        return self.run_hooks(self.hooks.for_phase(phase), phase)

    def run_hooks(self, hooks: Iterable[Hook], phase: HookPhase) -> list[HookRecord]:
        records: list[HookRecord] = []
        for hook in hooks:
            name = _hook_name(hook)
            try:
                hook()
            except Exception as exc:
                logger.warning("Hook %s (%s) failed: %s", name, phase.value, exc)
                record = HookRecord(hook_name=name, phase=phase, ok=False, error=str(exc))
            else:
                logger.debug("Hook %s (%s) ran", name, phase.value)
                record = HookRecord(hook_name=name, phase=phase)
            records.append(record)
        self._records.extend(records)
        return records

    @property
    def history(self) -> list[HookRecord]:
        """Return all invocation records for this runner."""
        return list(self._records)
