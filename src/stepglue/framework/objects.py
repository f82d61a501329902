"""Object factories -- construct the classes that own glue methods.

The registration engine calls ``add_class`` once per handler that has an
owning class, before building the handler's definition, so construction
problems surface while glue is loading rather than in the first scenario.
``start``/``stop`` bracket one world (a scenario or a whole run, as the
runner decides); instances live between the two.

A runner that brings its own dependency-injection container installs a
factory under the ``stepglue.object_factory`` entry point group;
:func:`load_object_factory` picks it up.
"""

from __future__ import annotations

import inspect
from importlib.metadata import entry_points
from typing import Any, Protocol, TypeVar, runtime_checkable

from stepglue.core.errors import GlueConfigurationError, GlueError
from stepglue.core.logging import get_logger

T = TypeVar("T")

OBJECT_FACTORY_ENTRY_POINT_GROUP = "stepglue.object_factory"

logger = get_logger(__name__)


@runtime_checkable
class ObjectFactory(Protocol):
    """Creates and caches instances of glue classes."""

    def add_class(self, glue_class: type) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def get_instance(self, glue_class: type[T]) -> T: ...


class DefaultObjectFactory:
    """One instance per class per world, built with a no-argument constructor."""

    def __init__(self) -> None:
        self._classes: list[type] = []
        self._instances: dict[type, Any] = {}
        self._started = False

    @property
    def classes(self) -> list[type]:
        return list(self._classes)

    def add_class(self, glue_class: type) -> None:
        if glue_class in self._classes:
            return
        if not inspect.isclass(glue_class):
            raise GlueConfigurationError(f"Glue owner must be a class, got {glue_class!r}")
        _require_no_arg_constructor(glue_class)
        self._classes.append(glue_class)
        logger.debug("glue_class_added", glue_class=glue_class.__qualname__)

    def start(self) -> None:
        self._instances.clear()
        self._started = True

    def stop(self) -> None:
        self._instances.clear()
        self._started = False

    def get_instance(self, glue_class: type[T]) -> T:
        if not self._started:
            raise GlueError(f"Cannot create {glue_class.__qualname__}: object factory not started")
        if glue_class not in self._instances:
            if glue_class not in self._classes:
                self.add_class(glue_class)
            self._instances[glue_class] = glue_class()
        return self._instances[glue_class]


def _require_no_arg_constructor(glue_class: type) -> None:
    try:
        signature = inspect.signature(glue_class)
    except (TypeError, ValueError):
        return
    required = [
        p.name
        for p in signature.parameters.values()
        if p.default is inspect.Parameter.empty
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    ]
    if required:
        raise GlueConfigurationError(
            f"{glue_class.__module__}:{glue_class.__qualname__} needs a no-argument constructor "
            f"(required parameters: {', '.join(required)})"
        )


def load_object_factory(group: str = OBJECT_FACTORY_ENTRY_POINT_GROUP) -> ObjectFactory:
    """
    The object factory installed under the *group* entry point.

    Exactly one installed distribution may provide a factory.  With none,
    :class:`DefaultObjectFactory` is used.  The entry point names a class
    (``"my_di.glue:ContainerObjectFactory"``) built with no arguments.

    Raises:
        GlueConfigurationError: If several factories are installed, or the
            one installed cannot be loaded or does not implement
            :class:`ObjectFactory`.
    """
    candidates = list(entry_points(group=group))
    if not candidates:
        return DefaultObjectFactory()
    if len(candidates) > 1:
        found = ", ".join(f"{ep.name} ({ep.value})" for ep in candidates)
        raise GlueConfigurationError(
            f"Expected at most one object factory in entry point group {group!r}, found: {found}",
            context={"entry_points": [ep.value for ep in candidates]},
        )

    (entry,) = candidates
    try:
        factory = entry.load()()
    except Exception as e:
        raise GlueConfigurationError(
            f"Cannot create object factory {entry.value!r}: {e}",
            context={"entry_point": entry.value},
            cause=e,
        ) from e
    if not isinstance(factory, ObjectFactory):
        raise GlueConfigurationError(
            f"{entry.value} does not implement ObjectFactory "
            "(add_class, start, stop, get_instance)",
            context={"entry_point": entry.value},
        )
    logger.info("object_factory_loaded", entry_point=entry.name, factory=type(factory).__qualname__)
    return factory
