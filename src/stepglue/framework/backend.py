"""Registration Engine -- load glue into a registry and weave advice.

Manifesto:
    Discovery hands the backend ``(marker, handler)`` pairs in a fixed order.
    The backend classifies each one, builds the matching definition and adds
    it to the registry.  Advice is collected on the side and woven onto the
    steps only after every step of the batch is known.  A batch either loads
    completely or not at all: a test run must never start with some glue
    silently missing.

ARCHITECTURE
────────────
::

    load_glue(paths) / load_glue_units(pairs) / load_glue_handler(fn, owner)
        │
        ▼   one transaction per call
    ┌──────────────────────────────────────────────────────────────┐
    │ for (marker, handler) in pairs:            register()        │
    │   STEP    → StepDefinition    → registry.add_step + steps    │
    │   BEFORE  → HookDefinition    → registry.add_before_hook     │
    │   AFTER   → HookDefinition    → registry.add_after_hook      │
    │   ADVICE  → AdviceDefinition  → AdviceIndex[pointcut]        │
    │   other   → ignored (read through introspection)             │
    │                                                              │
    │ weave():                                                     │
    │   for step in steps:                      registration order │
    │     for marker in markers_of(step):       declaration order  │
    │       for advice in index[marker.type]:   registration order │
    │         registry.add_step(advice.advise(step))               │
    └──────────────────────────────────────────────────────────────┘
        │  on any error: roll back registry + backend state, re-raise
        ▼
    complete_registration()  → registry.freeze()

Errors:
    - Errors from this library (duplicate steps, bad patterns, invalid
      pointcuts, discovery failures) propagate as raised, annotated with the
      marker and handler in ``error.context``.
    - Any other exception raised while reading a marker is wrapped in
      ``GlueConfigurationError``.

Re-entrant loading:
    Each call weaves over every step loaded so far, so advice from a later
    batch reaches steps of earlier batches.  Woven ``(step, advice)`` pairs
    are remembered and never woven twice.

Registration is single-threaded; do not share a backend between threads
while it is loading.

Tags:
    stepglue, framework, registration, advice, weaving

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from stepglue.core.errors import GlueConfigurationError, GlueError
from stepglue.core.logging import LogContext, get_logger, log_step
from stepglue.core.settings import GlueSettings, get_settings
from stepglue.framework.definitions import (
    AdviceDefinition,
    HookDefinition,
    HookKind,
    StepDefinition,
)
from stepglue.framework.handlers import HandlerRef
from stepglue.framework.introspection import AttributeMarkerIntrospector, MarkerIntrospector
from stepglue.framework.markers import Marker, MarkerKind, MarkerType
from stepglue.framework.objects import ObjectFactory, load_object_factory
from stepglue.framework.pointcuts import AdviceIndex, resolve_pointcuts
from stepglue.framework.registry import GlueRegistry
from stepglue.framework.scanner import GluePair, GlueScanner, ModuleGlueScanner
from stepglue.framework.snippets import SnippetGenerator

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Checkpoint:
    steps: int
    advices: dict[MarkerType, int]
    woven: frozenset[tuple[StepDefinition, AdviceDefinition]]


class GlueBackend:
    """Builds definitions from markers and loads them into a :class:`GlueRegistry`."""

    def __init__(
        self,
        registry: GlueRegistry,
        *,
        object_factory: ObjectFactory | None = None,
        scanner: GlueScanner | None = None,
        introspector: MarkerIntrospector | None = None,
        snippet_generator: SnippetGenerator | None = None,
        settings: GlueSettings | None = None,
    ) -> None:
        self._registry = registry
        self._object_factory = object_factory if object_factory is not None else load_object_factory()
        self._scanner = scanner if scanner is not None else ModuleGlueScanner()
        self._introspector = introspector if introspector is not None else AttributeMarkerIntrospector()
        self._snippet_generator = snippet_generator
        self._settings = settings if settings is not None else get_settings()
        self._steps: list[StepDefinition] = []
        self._advices = AdviceIndex()
        self._woven: set[tuple[StepDefinition, AdviceDefinition]] = set()

    @property
    def registry(self) -> GlueRegistry:
        return self._registry

    @property
    def object_factory(self) -> ObjectFactory:
        return self._object_factory

    @property
    def step_definitions(self) -> tuple[StepDefinition, ...]:
        """Plain (unadvised) steps in registration order."""
        return tuple(self._steps)

    @property
    def advice_index(self) -> AdviceIndex:
        return self._advices

    # ── Loading ──────────────────────────────────────────────────

    def load_glue(self, glue_paths: Iterable[str] | None = None) -> None:
        """Scan *glue_paths* (default: ``settings.glue_paths``), register, weave."""
        paths = list(glue_paths) if glue_paths is not None else list(self._settings.glue_paths)
        self._load(lambda: self._scanner.scan(paths), source=paths)

    def load_glue_units(self, pairs: Iterable[GluePair]) -> None:
        """Register pairs found by some other discovery mechanism, then weave."""
        self._load(lambda: pairs, source="units")

    def load_glue_handler(self, function: Callable[..., Any], owner: type | None = None) -> None:
        """Register every marker declared on one function, then weave."""
        handler = HandlerRef(function, owner)
        self._load(
            lambda: [(marker, handler) for marker in self._introspector.markers_of(handler)],
            source=handler.location,
        )

    def _load(self, pairs: Callable[[], Iterable[GluePair]], source: Any) -> None:
        checkpoint = self._checkpoint()
        with LogContext(glue_batch=uuid4().hex[:8]):
            try:
                with self._registry.transaction(), log_step("glue.load", glue_source=source) as timer:
                    registered = sum(1 for marker, handler in pairs() if self.register(marker, handler))
                    woven = self.weave()
                    timer.add_metric("registered", registered)
                    timer.add_metric("advised", woven)
            except BaseException as e:
                self._rollback(checkpoint)
                if isinstance(e, GlueError):
                    logger.error("glue_registration_failed", **e.to_dict())
                logger.warning("glue_batch_rolled_back", error_type=type(e).__name__)
                raise

    def complete_registration(self) -> None:
        """Freeze the registry; resolution is allowed from now on."""
        self._registry.freeze()

    # ── Registration ─────────────────────────────────────────────

    def register(self, marker: Marker, handler: HandlerRef) -> bool:
        """
        Register one discovered pair.

        Returns True if the marker produced a step, hook or advice definition.
        """
        kind = marker.kind
        if kind is MarkerKind.STEP:
            self.add_step_definition(marker, handler)
        elif kind in (MarkerKind.BEFORE, MarkerKind.AFTER):
            self.add_hook(marker, handler)
        elif kind is MarkerKind.ADVICE:
            self.add_advice_definition(marker, handler)
        else:
            return False
        return True

    def add_step_definition(self, marker: Marker, handler: HandlerRef) -> StepDefinition:
        with _registering(marker, handler):
            self._add_class(handler)
            definition = StepDefinition.build(
                handler,
                self._introspector.pattern(marker),
                timeout=self._timeout(marker),
                object_factory=self._object_factory,
            )
            self._registry.add_step(definition)
            self._steps.append(definition)
        return definition

    def add_hook(self, marker: Marker, handler: HandlerRef) -> HookDefinition:
        with _registering(marker, handler):
            self._add_class(handler)
            hook = HookDefinition.build(
                handler,
                HookKind(marker.kind.value),
                self._introspector.tag_expressions(marker),
                order=self._introspector.order(handler),
                timeout=self._timeout(marker),
                object_factory=self._object_factory,
            )
            if hook.kind is HookKind.BEFORE:
                self._registry.add_before_hook(hook)
            else:
                self._registry.add_after_hook(hook)
        return hook

    def add_advice_definition(self, marker: Marker, handler: HandlerRef) -> AdviceDefinition:
        with _registering(marker, handler):
            self._add_class(handler)
            pointcuts = resolve_pointcuts(self._introspector.pointcuts(marker), self._introspector)
            advice = AdviceDefinition.build(
                handler,
                self._introspector.pattern(marker),
                pointcuts,
                timeout=self._timeout(marker),
                object_factory=self._object_factory,
            )
            self._advices.add(advice)
        logger.debug(
            "advice_registered",
            pattern=advice.pattern_text,
            pointcuts=[p.qualified_name for p in pointcuts],
            location=advice.location,
        )
        return advice

    def _add_class(self, handler: HandlerRef) -> None:
        if handler.owner is not None:
            self._object_factory.add_class(handler.owner)

    def _timeout(self, marker: Marker) -> int:
        timeout = self._introspector.timeout(marker)
        return self._settings.default_step_timeout if timeout is None else timeout

    # ── Weaving ──────────────────────────────────────────────────

    def weave(self) -> int:
        """Add an advised step for every (step, advice) pair not woven yet.

        Returns the number of advised steps added.
        """
        woven = 0
        for step in self._steps:
            for marker in self._introspector.markers_of(step.handler):
                for advice in self._advices.advices_for(marker.type):
                    if (step, advice) in self._woven:
                        continue
                    advised = advice.advise(step)
                    self._registry.add_step(advised)
                    self._woven.add((step, advice))
                    woven += 1
                    logger.debug(
                        "advice_woven",
                        pointcut=marker.type.qualified_name,
                        advice=advice.location,
                        step=step.location,
                    )
        return woven

    # ── Rollback ─────────────────────────────────────────────────

    def _checkpoint(self) -> _Checkpoint:
        return _Checkpoint(
            steps=len(self._steps),
            advices=self._advices.checkpoint(),
            woven=frozenset(self._woven),
        )

    def _rollback(self, checkpoint: _Checkpoint) -> None:
        del self._steps[checkpoint.steps:]
        self._advices.rollback(checkpoint.advices)
        self._woven = set(checkpoint.woven)

    # ── World lifecycle / snippets ───────────────────────────────

    def build_world(self) -> None:
        self._object_factory.start()

    def dispose_world(self) -> None:
        self._object_factory.stop()

    def get_snippet(self, step_text: str, keyword: str = "Given") -> str | None:
        if self._snippet_generator is None:
            return None
        return self._snippet_generator.get_snippet(step_text, keyword)


@contextmanager
def _registering(marker: Marker, handler: HandlerRef) -> Iterator[None]:
    """Annotate library errors and wrap foreign ones for one marker."""
    try:
        yield
    except GlueError as e:
        e.with_context(marker=repr(marker), handler=handler.location)
        raise
    except Exception as e:
        raise GlueConfigurationError(
            f"Invalid {marker!r} on {handler.location}: {e}",
            context={"marker": repr(marker), "handler": handler.location},
            cause=e,
        ) from e
