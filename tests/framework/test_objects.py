"""Tests for object factories and their entry point discovery."""

from importlib.metadata import EntryPoint

import pytest

from stepglue.core.errors import GlueConfigurationError, GlueError
from stepglue.framework import objects
from stepglue.framework.objects import (
    OBJECT_FACTORY_ENTRY_POINT_GROUP,
    DefaultObjectFactory,
    ObjectFactory,
    load_object_factory,
)


class Steps:
    pass


class NeedsArgs:
    def __init__(self, browser):
        self.browser = browser


class TestDefaultObjectFactory:
    def test_satisfies_protocol(self):
        assert isinstance(DefaultObjectFactory(), ObjectFactory)

    def test_add_class_is_idempotent(self):
        factory = DefaultObjectFactory()
        factory.add_class(Steps)
        factory.add_class(Steps)
        assert factory.classes == [Steps]

    def test_rejects_constructor_with_required_arguments(self):
        with pytest.raises(GlueConfigurationError, match="no-argument constructor"):
            DefaultObjectFactory().add_class(NeedsArgs)

    def test_rejects_non_class(self):
        with pytest.raises(GlueConfigurationError):
            DefaultObjectFactory().add_class(lambda: None)

    def test_one_instance_per_world(self):
        factory = DefaultObjectFactory()
        factory.add_class(Steps)
        factory.start()
        first = factory.get_instance(Steps)
        assert factory.get_instance(Steps) is first
        factory.stop()
        factory.start()
        assert factory.get_instance(Steps) is not first

    def test_get_instance_before_start_raises(self):
        factory = DefaultObjectFactory()
        factory.add_class(Steps)
        with pytest.raises(GlueError, match="not started"):
            factory.get_instance(Steps)


def _entry_points(*values):
    found = [
        EntryPoint(name=f"factory{i}", value=value, group=OBJECT_FACTORY_ENTRY_POINT_GROUP)
        for i, value in enumerate(values)
    ]

    def fake(group):
        return found if group == OBJECT_FACTORY_ENTRY_POINT_GROUP else []

    return fake


class TestLoadObjectFactory:
    """Picking the object factory installed through entry points."""

    def test_defaults_when_none_installed(self, monkeypatch):
        monkeypatch.setattr(objects, "entry_points", _entry_points())
        assert type(load_object_factory()) is DefaultObjectFactory

    def test_uses_the_single_installed_factory(self, monkeypatch):
        monkeypatch.setattr(objects, "entry_points", _entry_points("custom_factory:CustomObjectFactory"))
        factory = load_object_factory()
        assert type(factory).__name__ == "CustomObjectFactory"

    def test_rejects_several_installed_factories(self, monkeypatch):
        monkeypatch.setattr(
            objects,
            "entry_points",
            _entry_points("custom_factory:CustomObjectFactory", "other_di.glue:Factory"),
        )
        with pytest.raises(GlueConfigurationError, match="at most one object factory") as exc_info:
            load_object_factory()
        assert "other_di.glue:Factory" in str(exc_info.value)

    def test_rejects_non_factory(self, monkeypatch):
        monkeypatch.setattr(objects, "entry_points", _entry_points("custom_factory:NotAFactory"))
        with pytest.raises(GlueConfigurationError, match="does not implement ObjectFactory"):
            load_object_factory()

    @pytest.mark.parametrize(
        "value", ["custom_factory:MisconfiguredFactory", "no_such_di_module:Factory"]
    )
    def test_wraps_load_failures(self, monkeypatch, value):
        monkeypatch.setattr(objects, "entry_points", _entry_points(value))
        with pytest.raises(GlueConfigurationError) as exc_info:
            load_object_factory()
        assert exc_info.value.cause is not None
        assert exc_info.value.context["entry_point"] == value
