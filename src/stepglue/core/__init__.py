"""stepglue core -- errors, logging and settings shared by the framework layer."""

from stepglue.core.errors import (
    AmbiguousStepDefinitionsError,
    DuplicateStepDefinitionError,
    ErrorCategory,
    GlueConfigurationError,
    GlueDiscoveryError,
    GlueError,
    GlueNotReadyError,
    GlueRegistryFrozenError,
    InvalidPointcutError,
    PatternCompilationError,
)
from stepglue.core.logging import configure_logging, get_logger, log_step
from stepglue.core.settings import GlueSettings, clear_settings_cache, get_settings

__all__ = [
    # Errors
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
    # Logging
    "configure_logging",
    "get_logger",
    "log_step",
    # Settings
    "GlueSettings",
    "get_settings",
    "clear_settings_cache",
]
