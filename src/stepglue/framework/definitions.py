"""Definition Model -- immutable step, hook and advice definitions.

Manifesto:
A definition binds a handler to what selects it: a compiled pattern for
steps and advice, a tag filter and an order for hooks.  Definitions are
built once while glue loads and are never modified afterwards; the
registry and any advice that wraps a step hold references to the same
object.

ARCHITECTURE
────────────
::

    StepDefinition         ── pattern + handler + timeout + object factory
    AdvisedStepDefinition  ── advice wrapped around a StepDefinition (weaving)
    AdviceDefinition       ── pattern + pointcuts; .advise(step)
    HookDefinition         ── tag filter + order + kind (before/after)
    StepDefinitionMatch    ── a definition plus the arguments captured from text

Advised steps
─────────────
An advice pattern must capture at least one group.  Its *last* group is the
text of the wrapped step, which must in turn match the wrapped step's
pattern::

    advice  r"^as an admin (.*)$"  +  step  r"^I have (\\d+) cukes$"
    "as an admin I have 5 cukes"   ->  arguments ["5"] (offset 15)

The advice's other groups come first in the argument list.

Tags:
    stepglue, framework, definitions, steps, hooks, advice

Doc-Types:
    api-reference
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from stepglue.core.errors import GlueConfigurationError
from stepglue.framework.handlers import HandlerRef
from stepglue.framework.patterns import Argument, CompiledPattern, arguments_from, compile_pattern
from stepglue.framework.tags import TagFilter

if TYPE_CHECKING:
    from stepglue.framework.markers import MarkerType
    from stepglue.framework.objects import ObjectFactory

# Hooks without an explicit @order run after all ordered hooks.
HOOK_ORDER_LAST = sys.maxsize


@dataclass(frozen=True, eq=False)
class StepDefinition:
    """A step handler selected by a compiled pattern."""

    handler: HandlerRef
    pattern: CompiledPattern
    timeout: int = 0
    object_factory: ObjectFactory | None = None

    @classmethod
    def build(
        cls,
        handler: HandlerRef,
        pattern: str,
        timeout: int = 0,
        object_factory: ObjectFactory | None = None,
    ) -> StepDefinition:
        return cls(
            handler=handler,
            pattern=compile_pattern(pattern),
            timeout=timeout,
            object_factory=object_factory,
        )

    @property
    def pattern_text(self) -> str:
        return self.pattern.source

    @property
    def identity(self) -> str:
        """Key used for duplicate detection."""
        return self.pattern.source

    @property
    def location(self) -> str:
        return self.handler.location

    @property
    def parameters(self) -> tuple[str, ...]:
        return self.handler.parameters

    def matched_arguments(self, step_text: str) -> list[Argument] | None:
        return self.pattern.match(step_text)

    def resolve(self) -> Callable[..., Any]:
        """Callable for the execution engine (bound to the owner instance)."""
        return self.handler.resolve(self.object_factory)

    def __repr__(self) -> str:
        return f"StepDefinition({self.pattern_text!r}, {self.location})"


@dataclass(frozen=True, eq=False)
class AdvisedStepDefinition:
    """Synthetic step produced by weaving an advice onto a step."""

    advice: AdviceDefinition
    advised: StepDefinition

    @property
    def handler(self) -> HandlerRef:
        return self.advice.handler

    @property
    def pattern(self) -> CompiledPattern:
        return self.advice.pattern

    @property
    def timeout(self) -> int:
        return self.advice.timeout or self.advised.timeout

    @property
    def object_factory(self) -> ObjectFactory | None:
        return self.advice.object_factory

    @property
    def pattern_text(self) -> str:
        return self.advice.pattern_text

    @property
    def identity(self) -> str:
        return f"{self.advice.pattern_text} -> {self.advised.pattern_text}"

    @property
    def location(self) -> str:
        return f"{self.advice.location} advising {self.advised.location}"

    @property
    def parameters(self) -> tuple[str, ...]:
        return self.advice.handler.parameters

    def matched_arguments(self, step_text: str) -> list[Argument] | None:
        m = self.advice.pattern.match_object(step_text)
        if m is None:
            return None
        inner_group = self.advice.pattern.group_count
        inner_start = m.start(inner_group)
        if inner_start == -1:
            return None
        inner_args = self.advised.matched_arguments(m.group(inner_group))
        if inner_args is None:
            return None
        outer_args = arguments_from(m, groups=range(1, inner_group))
        shifted = [
            Argument(offset=None if a.offset is None else a.offset + inner_start, value=a.value)
            for a in inner_args
        ]
        return outer_args + shifted

    def resolve(self) -> Callable[..., Any]:
        """Callable for the advice handler.

        The execution engine passes ``self.advised`` to it as the step being
        wrapped.
        """
        return self.advice.handler.resolve(self.advice.object_factory)

    def __repr__(self) -> str:
        return f"AdvisedStepDefinition({self.identity!r})"


AnyStepDefinition = Union[StepDefinition, AdvisedStepDefinition]


@dataclass(frozen=True, eq=False)
class AdviceDefinition:
    """Cross-cutting behavior woven onto steps that carry one of its pointcuts."""

    handler: HandlerRef
    pattern: CompiledPattern
    pointcuts: tuple[MarkerType, ...]
    timeout: int = 0
    object_factory: ObjectFactory | None = None

    @classmethod
    def build(
        cls,
        handler: HandlerRef,
        pattern: str,
        pointcuts: Iterable[MarkerType],
        timeout: int = 0,
        object_factory: ObjectFactory | None = None,
    ) -> AdviceDefinition:
        compiled = compile_pattern(pattern)
        if compiled.group_count < 1:
            raise GlueConfigurationError(
                f"Advice pattern {pattern!r} in {handler.location} must capture the advised "
                "step text in its last group"
            )
        return cls(
            handler=handler,
            pattern=compiled,
            pointcuts=tuple(pointcuts),
            timeout=timeout,
            object_factory=object_factory,
        )

    @property
    def pattern_text(self) -> str:
        return self.pattern.source

    @property
    def location(self) -> str:
        return self.handler.location

    def advise(self, step: StepDefinition) -> AdvisedStepDefinition:
        return AdvisedStepDefinition(advice=self, advised=step)

    def __repr__(self) -> str:
        names = ", ".join(p.name for p in self.pointcuts)
        return f"AdviceDefinition({self.pattern_text!r}, pointcuts=[{names}], {self.location})"


class HookKind(str, Enum):
    """When a hook runs relative to a scenario."""

    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True, eq=False)
class HookDefinition:
    """A lifecycle hook scoped by tags and ordered by ``order``."""

    handler: HandlerRef
    kind: HookKind
    tag_filter: TagFilter
    order: int = HOOK_ORDER_LAST
    timeout: int = 0
    object_factory: ObjectFactory | None = None

    @classmethod
    def build(
        cls,
        handler: HandlerRef,
        kind: HookKind,
        tag_expressions: Iterable[str] = (),
        order: int | None = None,
        timeout: int = 0,
        object_factory: ObjectFactory | None = None,
    ) -> HookDefinition:
        return cls(
            handler=handler,
            kind=kind,
            tag_filter=TagFilter.parse(tuple(tag_expressions)),
            order=HOOK_ORDER_LAST if order is None else order,
            timeout=timeout,
            object_factory=object_factory,
        )

    @property
    def tag_expressions(self) -> tuple[str, ...]:
        return self.tag_filter.expressions

    @property
    def location(self) -> str:
        return self.handler.location

    def matches(self, tags: Iterable[str]) -> bool:
        return self.tag_filter.matches(tags)

    def resolve(self) -> Callable[..., Any]:
        return self.handler.resolve(self.object_factory)

    def __repr__(self) -> str:
        return f"HookDefinition({self.kind.value}, order={self.order}, {self.location})"


@dataclass(frozen=True)
class StepDefinitionMatch:
    """A step definition matched against one step text."""

    step_definition: AnyStepDefinition
    arguments: list[Argument]
    step_text: str

    @property
    def values(self) -> list[str | None]:
        return [a.value for a in self.arguments]
