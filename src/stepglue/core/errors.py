"""
Structured error types for stepglue.

Every failure raised while loading glue carries enough metadata to point a
test author at the offending marker and handler, and to tell the runner
whether the whole run must stop or only one step fails.

Manifesto:
    - **Typed Error Hierarchy:** One class per rule that can be violated
    - **Fail Fast:** Registration errors are fatal and abort the batch
    - **Rich Context:** Errors carry the marker and handler that caused them
    - **Error Chaining:** Foreign exceptions are wrapped, never swallowed

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                          GlueError                            │
        │               (category, context, cause)                      │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  GlueConfigurationError        DuplicateStepDefinitionError   │
        │  (CONFIG)                      (VALIDATION)                   │
        │       │                              │                        │
        │  PatternCompilationError       AmbiguousStepDefinitionsError  │
        │  InvalidPointcutError                                         │
        │  GlueRegistryFrozenError                                      │
        │                                                               │
        │  GlueDiscoveryError            GlueNotReadyError              │
        │  (DISCOVERY)                   (INTERNAL)                     │
        └──────────────────────────────────────────────────────────────┘

Examples:
    Wrapping a foreign failure:

    >>> try:
    ...     int("x")
    ... except ValueError as e:
    ...     error = GlueConfigurationError("Bad timeout", cause=e)
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>

    Adding context:

    >>> error = GlueError("boom").with_context(handler="steps:given_cukes")
    >>> error.context["handler"]
    'steps:given_cukes'

Tags:
    error-handling, exception-hierarchy, error-context, stepglue

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stepglue.framework.definitions import StepDefinition, StepDefinitionMatch
    from stepglue.framework.markers import MarkerType


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and reporting.

    Categories separate authoring mistakes in glue code (CONFIG, VALIDATION)
    from problems finding glue at all (DISCOVERY) and misuse of the library
    itself (INTERNAL).
    """

    CONFIG = "CONFIG"  # Marker fields, patterns, pointcuts
    VALIDATION = "VALIDATION"  # Duplicate and ambiguous step definitions
    DISCOVERY = "DISCOVERY"  # Glue path import/scan failures
    INTERNAL = "INTERNAL"  # Lifecycle misuse, unexpected state


class GlueError(Exception):
    """
    Base exception for all stepglue errors.

    Every GlueError carries:
    - **category:** ErrorCategory for classification
    - **context:** dict of structured metadata (marker, handler, ...)
    - **cause:** optional underlying exception, also set as ``__cause__``

    Subclasses set ``default_category``.

    Examples:
        >>> error = GlueError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'GlueError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> GlueError:
        """
        Add context to this error (fluent API).

        Usage:
            raise GlueConfigurationError("Bad marker").with_context(
                marker="Given('^x$')",
                handler="steps:given_x",
            )
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (Fatal, abort registration)
# =============================================================================


class GlueConfigurationError(GlueError):
    """
    A marker or handler could not be turned into a definition.

    Raised directly for rule violations, and used to wrap any foreign
    exception hit while reading a marker's fields.
    """

    default_category = ErrorCategory.CONFIG


class PatternCompilationError(GlueConfigurationError):
    """Match text is not a valid regular expression."""

    def __init__(self, pattern: Any, cause: BaseException | None = None):
        self.pattern = pattern
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Invalid step pattern {pattern!r}{detail}", cause=cause)


class InvalidPointcutError(GlueConfigurationError):
    """An advice targets a marker type that is not flagged as a pointcut."""

    def __init__(self, pointcut: MarkerType | Any):
        self.pointcut = pointcut
        name = getattr(pointcut, "qualified_name", None) or repr(pointcut)
        super().__init__(f"{name} is not a pointcut. (Not created with pointcut())")


class GlueRegistryFrozenError(GlueConfigurationError):
    """Glue was added after registration completed."""

    default_category = ErrorCategory.INTERNAL


# =============================================================================
# DUPLICATE / AMBIGUOUS STEP DEFINITIONS
# =============================================================================


class DuplicateStepDefinitionError(GlueError):
    """Two step definitions were registered with the same pattern."""

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        existing: StepDefinition | None = None,
        duplicate: StepDefinition | None = None,
        message: str | None = None,
    ):
        self.existing = existing
        self.duplicate = duplicate
        if message is None:
            message = (
                f"Duplicate step definitions in {duplicate.location} "
                f"and {existing.location}: {duplicate.identity!r}"
            )
        super().__init__(message)


class AmbiguousStepDefinitionsError(DuplicateStepDefinitionError):
    """
    One step text matched more than one registered pattern.

    Raised per resolution, never at registration time. It fails the step
    being resolved, not the run.
    """

    def __init__(self, step_text: str, matches: list[StepDefinitionMatch]):
        self.step_text = step_text
        self.matches = matches
        described = "\n".join(
            f"  {m.step_definition.identity!r} in {m.step_definition.location}"
            for m in matches
        )
        super().__init__(
            existing=matches[0].step_definition,
            duplicate=matches[1].step_definition,
            message=f"Ambiguous match of {step_text!r}:\n{described}",
        )


# =============================================================================
# DISCOVERY / LIFECYCLE
# =============================================================================


class GlueDiscoveryError(GlueError):
    """Glue code could not be found or imported."""

    default_category = ErrorCategory.DISCOVERY

    def __init__(self, message: str, glue_path: str | None = None, cause: BaseException | None = None):
        self.glue_path = glue_path
        super().__init__(message, cause=cause)
        if glue_path is not None:
            self.context["glue_path"] = glue_path


class GlueNotReadyError(GlueError):
    """Resolution was attempted before registration completed."""


__all__ = [
    "ErrorCategory",
    "GlueError",
    "GlueConfigurationError",
    "PatternCompilationError",
    "InvalidPointcutError",
    "GlueRegistryFrozenError",
    "DuplicateStepDefinitionError",
    "AmbiguousStepDefinitionsError",
    "GlueDiscoveryError",
    "GlueNotReadyError",
]
