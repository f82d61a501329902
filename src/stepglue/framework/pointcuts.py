"""Pointcut Resolver -- validate advice targets and index advice by pointcut.

An advice names the marker types it applies to.  Each one must have been
created with :func:`~stepglue.framework.markers.pointcut`; anything else is
rejected while the advice is registered, not when weaving finds nothing to
do.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from stepglue.core.errors import InvalidPointcutError
from stepglue.framework.definitions import AdviceDefinition
from stepglue.framework.introspection import MarkerIntrospector
from stepglue.framework.markers import MarkerType


def resolve_pointcuts(
    targets: Iterable[object], introspector: MarkerIntrospector
) -> list[MarkerType]:
    """Return *targets* in order, or raise for the first one that is not a pointcut."""
    resolved = []
    for target in targets:
        if not introspector.is_pointcut(target):
            raise InvalidPointcutError(target)
        resolved.append(target)
    return resolved


class AdviceIndex:
    """``pointcut -> [AdviceDefinition]`` in registration order."""

    def __init__(self) -> None:
        self._by_pointcut: dict[MarkerType, list[AdviceDefinition]] = {}

    def add(self, advice: AdviceDefinition) -> None:
        for pointcut in advice.pointcuts:
            self._by_pointcut.setdefault(pointcut, []).append(advice)

    def advices_for(self, marker_type: MarkerType) -> list[AdviceDefinition]:
        return list(self._by_pointcut.get(marker_type, ()))

    def checkpoint(self) -> dict[MarkerType, int]:
        return {pointcut: len(advices) for pointcut, advices in self._by_pointcut.items()}

    def rollback(self, checkpoint: dict[MarkerType, int]) -> None:
        for pointcut in list(self._by_pointcut):
            kept = checkpoint.get(pointcut, 0)
            if kept:
                del self._by_pointcut[pointcut][kept:]
            else:
                del self._by_pointcut[pointcut]

    def __contains__(self, marker_type: object) -> bool:
        return marker_type in self._by_pointcut

    def __iter__(self) -> Iterator[MarkerType]:
        return iter(self._by_pointcut)

    def __len__(self) -> int:
        return len({id(a) for advices in self._by_pointcut.values() for a in advices})
