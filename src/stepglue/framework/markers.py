"""Markers -- declarative decorators that classify glue functions.

Manifesto:
Glue code declares what a function is for by decorating it.  A decorator
does not register anything; it only attaches a :class:`Marker` record to
the function.  Discovery later pairs each marker with its handler and the
registration engine turns the pairs into definitions.  Keeping the two
steps apart means the same glue module can be loaded into any number of
registries, with no global state.

ARCHITECTURE
────────────
::

    MarkerType           ── identity of a kind of marker (Given, Before, ...)
      ├── StepKeyword    ── @Given(pattern, timeout=None)
      ├── HookType       ── @Before(*tag_expressions, timeout=None)
      ├── AdviceType     ── @advice(pattern, pointcuts=[...], timeout=None)
      └── OrderType      ── @order(n)
    pointcut(name)       ── a MarkerType flagged as an advice target
    marker(name)         ── a plain MarkerType with no meaning to the engine

    Marker               ── frozen record attached to the function
    declared_markers(fn) ── markers in source (top-to-bottom) order

Example::

    from stepglue.framework.markers import Given, advice, pointcut

    Authenticated = pointcut("Authenticated")

    @Given(r"^I have (\\d+) cukes$")
    @Authenticated
    def have_cukes(count):
        ...

    @advice(r"^as an admin (.*)$", pointcuts=[Authenticated])
    def as_admin(step):
        ...

Tags:
    stepglue, framework, markers, decorators

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

GLUE_MARKERS_ATTR = "__glue_markers__"


class MarkerKind(str, Enum):
    """How the registration engine treats a marker."""

    STEP = "step"
    BEFORE = "before"
    AFTER = "after"
    ADVICE = "advice"
    ORDER = "order"
    PLAIN = "plain"  # Pointcuts and other markers read only through introspection


@dataclass(frozen=True)
class Marker:
    """One marker declared on one glue function.

    Field values are stored as given; the introspector validates them when
    the marker is registered.
    """

    type: MarkerType
    pattern: Any = None
    timeout: Any = None
    tags: tuple[Any, ...] = ()
    order: Any = None
    pointcuts: tuple[Any, ...] = ()

    @property
    def kind(self) -> MarkerKind:
        return self.type.kind

    def __repr__(self) -> str:
        if self.kind in (MarkerKind.STEP, MarkerKind.ADVICE):
            return f"@{self.type.name}({self.pattern!r})"
        if self.kind in (MarkerKind.BEFORE, MarkerKind.AFTER):
            return f"@{self.type.name}({', '.join(repr(t) for t in self.tags)})"
        if self.kind is MarkerKind.ORDER:
            return f"@{self.type.name}({self.order!r})"
        return f"@{self.type.name}"


class MarkerType:
    """Identity of a kind of marker.

    Marker types compare by identity, so two pointcuts with the same name in
    different modules are different pointcuts.
    """

    def __init__(
        self,
        name: str,
        kind: MarkerKind = MarkerKind.PLAIN,
        *,
        is_pointcut: bool = False,
        module: str | None = None,
    ):
        self.name = name
        self.kind = kind
        self.is_pointcut = is_pointcut
        self.module = module

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}" if self.module else self.name

    def mark(self, function: F, **fields: Any) -> F:
        """Attach a marker of this type to *function* and return it."""
        markers = function.__dict__.setdefault(GLUE_MARKERS_ATTR, [])
        # Decorators apply bottom-up; prepending keeps source order.
        markers.insert(0, Marker(type=self, **fields))
        return function

    def __call__(self, *args: Any) -> Any:
        # Supports both ``@Slow`` and ``@Slow()``
        if len(args) == 1 and callable(args[0]):
            return self.mark(args[0])
        if args:
            raise TypeError(f"@{self.name} takes no arguments")

        def decorator(function: F) -> F:
            return self.mark(function)

        return decorator

    def __repr__(self) -> str:
        flag = ", pointcut" if self.is_pointcut else ""
        return f"MarkerType({self.qualified_name!r}, {self.kind.value}{flag})"


class StepKeyword(MarkerType):
    """Step marker type: ``@Given(pattern, timeout=None)``."""

    def __init__(self, name: str, *, module: str | None = None):
        super().__init__(name, MarkerKind.STEP, module=module)

    def __call__(self, pattern: Any, *, timeout: Any = None) -> Callable[[F], F]:  # type: ignore[override]
        _reject_bare(self, pattern, "pattern")

        def decorator(function: F) -> F:
            return self.mark(function, pattern=pattern, timeout=timeout)

        return decorator


class HookType(MarkerType):
    """Hook marker type: ``@Before("@web", "~@slow", timeout=None)`` or bare ``@Before``."""

    def __init__(self, name: str, kind: MarkerKind, *, module: str | None = None):
        if kind not in (MarkerKind.BEFORE, MarkerKind.AFTER):
            raise ValueError(f"Hook marker kind must be before or after, got {kind!r}")
        super().__init__(name, kind, module=module)

    def __call__(self, *tag_expressions: Any, timeout: Any = None) -> Any:  # type: ignore[override]
        if len(tag_expressions) == 1 and callable(tag_expressions[0]) and timeout is None:
            return self.mark(tag_expressions[0])

        def decorator(function: F) -> F:
            return self.mark(function, tags=tuple(tag_expressions), timeout=timeout)

        return decorator


class AdviceType(MarkerType):
    """Advice marker type: ``@advice(pattern, pointcuts=[...], timeout=None)``."""

    def __init__(self, name: str, *, module: str | None = None):
        super().__init__(name, MarkerKind.ADVICE, module=module)

    def __call__(  # type: ignore[override]
        self, pattern: Any, *, pointcuts: Sequence[Any], timeout: Any = None
    ) -> Callable[[F], F]:
        _reject_bare(self, pattern, "pattern")
        targets = tuple(pointcuts) if isinstance(pointcuts, (list, tuple)) else pointcuts

        def decorator(function: F) -> F:
            return self.mark(function, pattern=pattern, pointcuts=targets, timeout=timeout)

        return decorator


class OrderType(MarkerType):
    """Hook order marker type: ``@order(10)``; lower runs first."""

    def __init__(self, name: str, *, module: str | None = None):
        super().__init__(name, MarkerKind.ORDER, module=module)

    def __call__(self, value: Any) -> Callable[[F], F]:  # type: ignore[override]
        _reject_bare(self, value, "value")

        def decorator(function: F) -> F:
            return self.mark(function, order=value)

        return decorator


def _reject_bare(marker_type: MarkerType, argument: Any, expected: str) -> None:
    """Reject a bare @Given / @order applied directly to a function."""
    if callable(argument):
        target = getattr(argument, "__qualname__", repr(argument))
        raise TypeError(
            f"@{marker_type.name} needs a {expected}, e.g. @{marker_type.name}(...); "
            f"it was applied bare to {target}"
        )


def pointcut(name: str, *, module: str | None = None) -> MarkerType:
    """Create a marker type that advice may target."""
    return MarkerType(name, MarkerKind.PLAIN, is_pointcut=True, module=module)


def marker(name: str, *, module: str | None = None) -> MarkerType:
    """Create a plain marker type (not an advice target)."""
    return MarkerType(name, MarkerKind.PLAIN, module=module)


def declared_markers(function: Callable[..., Any]) -> list[Marker]:
    """Markers declared on *function*, in source order."""
    return list(getattr(function, GLUE_MARKERS_ATTR, ()))


def is_glue(function: Any) -> bool:
    """True if *function* carries any glue marker."""
    return callable(function) and bool(getattr(function, GLUE_MARKERS_ATTR, None))


Given = StepKeyword("Given", module=__name__)
When = StepKeyword("When", module=__name__)
Then = StepKeyword("Then", module=__name__)
And = StepKeyword("And", module=__name__)
But = StepKeyword("But", module=__name__)

Before = HookType("Before", MarkerKind.BEFORE, module=__name__)
After = HookType("After", MarkerKind.AFTER, module=__name__)

advice = AdviceType("Advice", module=__name__)
order = OrderType("Order", module=__name__)
