"""Glue Registry -- the step definitions and hooks of one test run.

Manifesto:
    The registry is the aggregate of record between glue loading and step
    execution.  It is filled once, sequentially, by the registration engine,
    then frozen and read concurrently by every scenario.  Freezing is the
    one synchronisation point: resolution waits for it, and writes after it
    are rejected.

ARCHITECTURE
────────────
::

    Registration phase (single writer)       Execution phase (many readers)
    ───────────────────────────────────       ──────────────────────────────
    add_step(def)         ── dup check        resolve_step(text)   ── 0/1 match or ambiguity
    add_before_hook(hook)                     match_steps(text)    ── all matches
    add_after_hook(hook)                      before_hooks_for(tags)
    transaction()         ── rollback batch   after_hooks_for(tags)
              │                                         ▲
              └──────────── freeze() ───────────────────┘
                       (threading.Event barrier)

Rules:
    - Steps and hooks are append-only; there is no removal API.
    - Two steps with the same pattern identity are rejected at ``add_step``.
    - A step text matching several patterns is ambiguous; that is reported
      by ``resolve_step`` for that step only.
    - Hooks are filtered by tags and stable-sorted by ascending ``order``,
      so equal orders keep registration order.

Example::

    registry = GlueRegistry()
    registry.add_step(StepDefinition.build(handler, r"^I have (\\d+) cukes$"))
    registry.freeze()
    match = registry.resolve_step("I have 5 cukes")

Tags:
    stepglue, framework, registry, steps, hooks, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from stepglue.core.errors import (
    AmbiguousStepDefinitionsError,
    DuplicateStepDefinitionError,
    GlueConfigurationError,
    GlueNotReadyError,
    GlueRegistryFrozenError,
)
from stepglue.core.logging import get_logger
from stepglue.core.settings import get_settings
from stepglue.framework.definitions import (
    AnyStepDefinition,
    HookDefinition,
    HookKind,
    StepDefinitionMatch,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Checkpoint:
    steps: int
    before_hooks: int
    after_hooks: int


class GlueRegistry:
    """Steps, before hooks and after hooks for one test run."""

    def __init__(self, *, ready_timeout: float | None = None) -> None:
        if ready_timeout is None:
            ready_timeout = get_settings().ready_timeout_seconds
        self._ready_timeout = ready_timeout
        self._steps: list[AnyStepDefinition] = []
        self._by_identity: dict[str, AnyStepDefinition] = {}
        self._before_hooks: list[HookDefinition] = []
        self._after_hooks: list[HookDefinition] = []
        self._lock = threading.Lock()
        self._ready = threading.Event()

    # ── Registration ─────────────────────────────────────────────

    def add_step(self, definition: AnyStepDefinition) -> None:
        with self._lock:
            self._check_writable()
            existing = self._by_identity.get(definition.identity)
            if existing is not None:
                raise DuplicateStepDefinitionError(existing, definition)
            self._steps.append(definition)
            self._by_identity[definition.identity] = definition
        logger.debug(
            "step_definition_registered",
            pattern=definition.identity,
            location=definition.location,
        )

    def add_before_hook(self, hook: HookDefinition) -> None:
        self._add_hook(hook, HookKind.BEFORE, self._before_hooks)

    def add_after_hook(self, hook: HookDefinition) -> None:
        self._add_hook(hook, HookKind.AFTER, self._after_hooks)

    def _add_hook(self, hook: HookDefinition, kind: HookKind, hooks: list[HookDefinition]) -> None:
        if hook.kind is not kind:
            raise GlueConfigurationError(f"Cannot add {hook.kind.value} hook {hook.location} as a {kind.value} hook")
        with self._lock:
            self._check_writable()
            hooks.append(hook)
        logger.debug(
            "hook_registered",
            kind=kind.value,
            order=hook.order,
            tags=list(hook.tag_expressions),
            location=hook.location,
        )

    def _check_writable(self) -> None:
        if self._ready.is_set():
            raise GlueRegistryFrozenError("Glue registry is frozen; registration has completed")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Undo every addition made inside the block if it raises."""
        with self._lock:
            checkpoint = _Checkpoint(
                steps=len(self._steps),
                before_hooks=len(self._before_hooks),
                after_hooks=len(self._after_hooks),
            )
        try:
            yield
        except BaseException:
            self._rollback(checkpoint)
            raise

    def _rollback(self, checkpoint: _Checkpoint) -> None:
        with self._lock:
            discarded = self._steps[checkpoint.steps:]
            for definition in discarded:
                del self._by_identity[definition.identity]
            del self._steps[checkpoint.steps:]
            del self._before_hooks[checkpoint.before_hooks:]
            del self._after_hooks[checkpoint.after_hooks:]
        logger.debug("registry_rolled_back", discarded_steps=len(discarded))

    def freeze(self) -> None:
        """Complete registration; resolution may start once this returns."""
        if self._ready.is_set():
            return
        with self._lock:
            self._ready.set()
        logger.info(
            "registry_frozen",
            steps=len(self._steps),
            before_hooks=len(self._before_hooks),
            after_hooks=len(self._after_hooks),
        )

    @property
    def frozen(self) -> bool:
        return self._ready.is_set()

    # ── Inspection ───────────────────────────────────────────────

    @property
    def step_definitions(self) -> tuple[AnyStepDefinition, ...]:
        return tuple(self._steps)

    @property
    def before_hooks(self) -> tuple[HookDefinition, ...]:
        return tuple(self._before_hooks)

    @property
    def after_hooks(self) -> tuple[HookDefinition, ...]:
        return tuple(self._after_hooks)

    # ── Resolution ───────────────────────────────────────────────

    def _await_ready(self) -> None:
        if not self._ready.wait(self._ready_timeout):
            raise GlueNotReadyError(
                f"Glue registration did not complete within {self._ready_timeout}s"
            )

    def match_steps(self, step_text: str) -> list[StepDefinitionMatch]:
        """Every step definition matching *step_text*, in registration order."""
        self._await_ready()
        matches = []
        for definition in self._steps:
            arguments = definition.matched_arguments(step_text)
            if arguments is not None:
                matches.append(
                    StepDefinitionMatch(
                        step_definition=definition,
                        arguments=arguments,
                        step_text=step_text,
                    )
                )
        return matches

    def resolve_step(self, step_text: str) -> StepDefinitionMatch | None:
        """
        The single definition matching *step_text*, or ``None``.

        Raises:
            AmbiguousStepDefinitionsError: If more than one definition matches.
        """
        matches = self.match_steps(step_text)
        if not matches:
            return None
        if len(matches) > 1:
            raise AmbiguousStepDefinitionsError(step_text, matches)
        return matches[0]

    def before_hooks_for(self, tags: Iterable[str]) -> list[HookDefinition]:
        self._await_ready()
        return _applicable(self._before_hooks, tags)

    def after_hooks_for(self, tags: Iterable[str]) -> list[HookDefinition]:
        self._await_ready()
        return _applicable(self._after_hooks, tags)


def _applicable(hooks: list[HookDefinition], tags: Iterable[str]) -> list[HookDefinition]:
    active = list(tags)
    # sorted() is stable: equal orders keep registration order.
    return sorted((h for h in hooks if h.matches(active)), key=lambda h: h.order)
