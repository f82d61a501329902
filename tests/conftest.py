"""
Shared pytest fixtures and configuration for stepglue tests.

This module provides:
- sys.path setup for the src layout and the on-disk glue fixture packages
- Settings cache isolation
- Fresh registry / backend fixtures
- A recording object factory for asserting add_class/start/stop calls
"""

import os
import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure stepglue and the fixture glue packages are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent / "fixtures"))

from stepglue.core.settings import GlueSettings, clear_settings_cache
from stepglue.framework.backend import GlueBackend
from stepglue.framework.registry import GlueRegistry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        if "scanner" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_fixture(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Drop cached settings and STEPGLUE_* variables around each test.

    Settings are cached process-wide; without this a test that sets an
    environment variable would leak into every later test.
    """
    for key in list(os.environ):
        if key.startswith("STEPGLUE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Registry / Backend Fixtures
# =============================================================================


class RecordingObjectFactory:
    """Object factory that records every call made to it."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []
        self.instances: dict[type, object] = {}

    def add_class(self, glue_class: type) -> None:
        self.calls.append(("add_class", glue_class))

    def start(self) -> None:
        self.calls.append(("start", None))

    def stop(self) -> None:
        self.calls.append(("stop", None))
        self.instances.clear()

    def get_instance(self, glue_class: type) -> object:
        return self.instances.setdefault(glue_class, glue_class())

    @property
    def added_classes(self) -> list[type]:
        return [arg for name, arg in self.calls if name == "add_class"]


@pytest.fixture
def settings() -> GlueSettings:
    return GlueSettings(ready_timeout_seconds=0.05)


@pytest.fixture
def registry() -> GlueRegistry:
    """A fresh registry whose resolution calls fail fast if never frozen."""
    return GlueRegistry(ready_timeout=0.05)


@pytest.fixture
def object_factory() -> RecordingObjectFactory:
    return RecordingObjectFactory()


@pytest.fixture
def backend(registry: GlueRegistry, object_factory: RecordingObjectFactory, settings: GlueSettings) -> GlueBackend:
    return GlueBackend(registry, object_factory=object_factory, settings=settings)
