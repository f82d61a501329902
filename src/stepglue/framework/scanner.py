"""Glue discovery -- turn glue paths into ``(marker, handler)`` pairs.

The registration engine only consumes pairs; how they are found is up to
the :class:`GlueScanner` it is given.  :class:`ModuleGlueScanner` imports
dotted module or package names and walks packages recursively.

Within a module, pairs come out in definition order.  A class defined in
the module contributes its glue methods at the point the class is defined,
with the class as the handler's owner.  A function with several markers
yields one pair per marker, in source order.
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from collections.abc import Iterable, Iterator
from types import ModuleType
from typing import Protocol, runtime_checkable

from stepglue.core.errors import GlueDiscoveryError
from stepglue.core.logging import get_logger
from stepglue.framework.handlers import HandlerRef
from stepglue.framework.markers import Marker, declared_markers, is_glue

logger = get_logger(__name__)

GluePair = tuple[Marker, HandlerRef]


@runtime_checkable
class GlueScanner(Protocol):
    """Produces ``(marker, handler)`` pairs for a set of glue paths."""

    def scan(self, glue_paths: Iterable[str]) -> Iterable[GluePair]: ...


def normalise_glue_path(glue_path: str) -> str:
    """``classpath:com/example/steps`` -> ``com.example.steps``."""
    path = glue_path.strip()
    if path.startswith("classpath:"):
        path = path[len("classpath:"):]
    return path.strip("/").replace("/", ".")


class ModuleGlueScanner:
    """Discovers glue in importable modules and packages."""

    def scan(self, glue_paths: Iterable[str]) -> Iterator[GluePair]:
        seen: set[str] = set()
        for glue_path in glue_paths:
            for module in self._modules(normalise_glue_path(glue_path)):
                if module.__name__ in seen:
                    continue
                seen.add(module.__name__)
                yield from scan_module(module)

    def _modules(self, name: str) -> Iterator[ModuleType]:
        module = _import(name, name)
        yield module
        search_path = getattr(module, "__path__", None)
        if search_path is None:
            return
        for info in sorted(pkgutil.walk_packages(search_path, prefix=f"{name}.", onerror=_raise_walk_error), key=lambda i: i.name):
            yield _import(info.name, name)


def scan_module(module: ModuleType) -> Iterator[GluePair]:
    """Pairs for the glue functions and classes *defined* in *module*."""
    count = 0
    for member in vars(module).values():
        if getattr(member, "__module__", None) != module.__name__:
            continue
        if inspect.isclass(member):
            for pair in scan_class(member):
                count += 1
                yield pair
        elif is_glue(member):
            handler = HandlerRef(member)
            for marker in declared_markers(member):
                count += 1
                yield marker, handler
    logger.debug("glue_module_scanned", module=module.__name__, markers=count)


def scan_class(glue_class: type) -> Iterator[GluePair]:
    """Pairs for the glue methods declared directly on *glue_class*."""
    for attribute in vars(glue_class).values():
        if is_glue(attribute):
            handler = HandlerRef(attribute, owner=glue_class)
            for marker in declared_markers(attribute):
                yield marker, handler


def _import(name: str, glue_path: str) -> ModuleType:
    try:
        return importlib.import_module(name)
    except Exception as e:
        raise GlueDiscoveryError(f"Cannot import glue module {name!r}: {type(e).__name__}: {e}", glue_path=glue_path, cause=e) from e


def _raise_walk_error(name: str) -> None:
    raise GlueDiscoveryError(f"Cannot import glue package {name!r}", glue_path=name)
