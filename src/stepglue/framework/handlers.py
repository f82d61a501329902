"""Handler references -- the invocable units glue markers decorate.

The core never calls a handler.  It stores a reference, the type that owns
it, and its ordered parameter list, so the execution engine can bind
captured arguments later without reflective lookups.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stepglue.framework.objects import ObjectFactory


class HandlerRef:
    """Reference to a glue function and the class that declares it.

    ``owner`` is ``None`` for module-level functions.  Two references are
    equal when they point at the same function on the same owner.
    """

    __slots__ = ("function", "owner", "parameters")

    def __init__(self, function: Callable[..., Any], owner: type | None = None):
        if not callable(function):
            raise TypeError(f"Glue handler must be callable, got {type(function).__name__}")
        self.function = function
        self.owner = owner
        self.parameters: tuple[str, ...] = _parameter_names(function, owner)

    @property
    def name(self) -> str:
        return getattr(self.function, "__name__", repr(self.function))

    @property
    def location(self) -> str:
        """``module:qualname`` of the handler, for error messages."""
        module = getattr(self.function, "__module__", None) or "?"
        qualname = getattr(self.function, "__qualname__", None) or self.name
        if self.owner is not None and "." not in qualname:
            qualname = f"{self.owner.__qualname__}.{qualname}"
        return f"{module}:{qualname}"

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    def resolve(self, object_factory: ObjectFactory | None) -> Callable[..., Any]:
        """Return a callable for the execution engine.

        Methods are bound to the object factory's instance of the owner.
        """
        if self.owner is None:
            return self.function
        if object_factory is None:
            raise ValueError(f"{self.location} needs an object factory to be invoked")
        instance = object_factory.get_instance(self.owner)
        return self.function.__get__(instance, self.owner)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandlerRef):
            return NotImplemented
        return self.function is other.function and self.owner is other.owner

    def __hash__(self) -> int:
        return hash((id(self.function), id(self.owner)))

    def __repr__(self) -> str:
        return f"HandlerRef({self.location})"


def _parameter_names(function: Callable[..., Any], owner: type | None) -> tuple[str, ...]:
    try:
        params = list(inspect.signature(function).parameters.values())
    except (TypeError, ValueError):
        return ()
    if owner is not None and params and params[0].name in ("self", "cls"):
        params = params[1:]
    return tuple(
        p.name
        for p in params
        if p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    )
