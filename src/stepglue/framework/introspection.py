"""Marker introspection -- read markers and their fields.

The registration engine never reads marker attributes directly.  It asks a
:class:`MarkerIntrospector`, which validates each field as it extracts it.
A field of the wrong type raises ``TypeError``/``ValueError``; the engine
wraps those into ``GlueConfigurationError`` with the marker and handler
that caused them.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from stepglue.framework.handlers import HandlerRef
from stepglue.framework.markers import Marker, MarkerKind, MarkerType, declared_markers


@runtime_checkable
class MarkerIntrospector(Protocol):
    """Reads markers declared on handlers and the semantic fields of a marker."""

    def markers_of(self, handler: HandlerRef) -> Sequence[Marker]: ...

    def pattern(self, marker: Marker) -> str: ...

    def timeout(self, marker: Marker) -> int | None: ...

    def tag_expressions(self, marker: Marker) -> tuple[str, ...]: ...

    def order(self, handler: HandlerRef) -> int | None: ...

    def pointcuts(self, marker: Marker) -> tuple[MarkerType, ...]: ...

    def is_pointcut(self, marker_type: Any) -> bool: ...


class AttributeMarkerIntrospector:
    """Introspector for markers attached by :mod:`stepglue.framework.markers`."""

    def markers_of(self, handler: HandlerRef) -> list[Marker]:
        return declared_markers(handler.function)

    def pattern(self, marker: Marker) -> str:
        # Compilation validates the value; see patterns.compile_pattern.
        return marker.pattern

    def timeout(self, marker: Marker) -> int | None:
        value = marker.timeout
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"timeout must be an int, got {type(value).__name__}")
        if value < 0:
            raise ValueError(f"timeout must not be negative, got {value}")
        return value

    def tag_expressions(self, marker: Marker) -> tuple[str, ...]:
        for expression in marker.tags:
            if not isinstance(expression, str):
                raise TypeError(f"tag expressions must be strings, got {type(expression).__name__}")
        return tuple(marker.tags)

    def order(self, handler: HandlerRef) -> int | None:
        orders = [m.order for m in self.markers_of(handler) if m.kind is MarkerKind.ORDER]
        if not orders:
            return None
        if len(orders) > 1:
            raise ValueError(f"@order declared {len(orders)} times")
        value = orders[0]
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"order must be an int, got {type(value).__name__}")
        return value

    def pointcuts(self, marker: Marker) -> tuple[MarkerType, ...]:
        if not isinstance(marker.pointcuts, tuple):
            raise TypeError(
                f"pointcuts must be a list of marker types, got {type(marker.pointcuts).__name__}"
            )
        return marker.pointcuts

    def is_pointcut(self, marker_type: Any) -> bool:
        return isinstance(marker_type, MarkerType) and marker_type.is_pointcut
