"""
Centralized settings for stepglue.

Manifesto:
    Glue loading is configured once per test run.  ``GlueSettings`` is the
    single validated, cached source for the values the registration engine
    and registry need, read from ``STEPGLUE_*`` environment variables and
    ``.env`` files.

Examples:
    >>> import os
    >>> os.environ["STEPGLUE_GLUE_PATHS"] = '["features.steps"]'
    >>> get_settings(_force_reload=True).glue_paths
    ['features.steps']

Tags:
    stepglue, configuration, settings, pydantic

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GlueSettings(BaseSettings):
    """stepglue configuration.

    Fields
    ──────
    glue_paths             : Default search roots for ``GlueBackend.load_glue()``
    default_step_timeout   : Timeout used when a marker does not set one (0 = none)
    ready_timeout_seconds  : How long resolution waits for registration to finish
    log_level              : structlog log level
    log_format             : ``console`` or ``json``
    """

    model_config = SettingsConfigDict(
        env_prefix="STEPGLUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Discovery ────────────────────────────────────────────────
    glue_paths: list[str] = Field(default_factory=list)

    # ── Definitions ──────────────────────────────────────────────
    default_step_timeout: int = Field(default=0, ge=0)

    # ── Registry ─────────────────────────────────────────────────
    ready_timeout_seconds: float = Field(default=30.0, ge=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, GlueSettings] = {}


def get_settings(*, _force_reload: bool = False) -> GlueSettings:
    """Load, validate, and cache a :class:`GlueSettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = GlueSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Drop the cached settings (for testing)."""
    _settings_cache.clear()


__all__ = ["GlueSettings", "get_settings", "clear_settings_cache"]
