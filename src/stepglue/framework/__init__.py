"""
stepglue framework -- markers, definitions, registry and registration engine.

Usage:
    from stepglue.framework import GlueBackend, GlueRegistry

    registry = GlueRegistry()
    backend = GlueBackend(registry)
    backend.load_glue(["features.steps"])
    backend.complete_registration()

    match = registry.resolve_step("I have 5 cukes")
"""

from stepglue.framework.backend import GlueBackend
from stepglue.framework.definitions import (
    HOOK_ORDER_LAST,
    AdviceDefinition,
    AdvisedStepDefinition,
    HookDefinition,
    HookKind,
    StepDefinition,
    StepDefinitionMatch,
)
from stepglue.framework.handlers import HandlerRef
from stepglue.framework.introspection import AttributeMarkerIntrospector, MarkerIntrospector
from stepglue.framework.markers import (
    After,
    And,
    Before,
    But,
    Given,
    Marker,
    MarkerKind,
    MarkerType,
    Then,
    When,
    advice,
    marker,
    order,
    pointcut,
)
from stepglue.framework.objects import DefaultObjectFactory, ObjectFactory, load_object_factory
from stepglue.framework.patterns import Argument, CompiledPattern, compile_pattern
from stepglue.framework.pointcuts import AdviceIndex, resolve_pointcuts
from stepglue.framework.registry import GlueRegistry
from stepglue.framework.scanner import GlueScanner, ModuleGlueScanner
from stepglue.framework.snippets import SnippetGenerator
from stepglue.framework.tags import TagFilter

__all__ = [
    # Engine / registry
    "GlueBackend",
    "GlueRegistry",
    # Definitions
    "StepDefinition",
    "AdvisedStepDefinition",
    "AdviceDefinition",
    "HookDefinition",
    "HookKind",
    "HOOK_ORDER_LAST",
    "StepDefinitionMatch",
    "HandlerRef",
    # Patterns / tags
    "compile_pattern",
    "CompiledPattern",
    "Argument",
    "TagFilter",
    # Pointcuts
    "resolve_pointcuts",
    "AdviceIndex",
    # Markers
    "Marker",
    "MarkerKind",
    "MarkerType",
    "Given",
    "When",
    "Then",
    "And",
    "But",
    "Before",
    "After",
    "advice",
    "order",
    "pointcut",
    "marker",
    # Collaborators
    "MarkerIntrospector",
    "AttributeMarkerIntrospector",
    "ObjectFactory",
    "DefaultObjectFactory",
    "load_object_factory",
    "GlueScanner",
    "ModuleGlueScanner",
    "SnippetGenerator",
]
