"""Tests for glue discovery from importable packages."""

import pytest
from structlog.testing import capture_logs

from stepglue.core.errors import GlueDiscoveryError, InvalidPointcutError
from stepglue.core.settings import GlueSettings
from stepglue.framework.backend import GlueBackend
from stepglue.framework.definitions import AdvisedStepDefinition
from stepglue.framework.markers import MarkerKind
from stepglue.framework.scanner import GlueScanner, ModuleGlueScanner, normalise_glue_path


class TestNormaliseGluePath:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("sample_glue", "sample_glue"),
            ("sample_glue/hooks", "sample_glue.hooks"),
            ("classpath:sample_glue/hooks/", "sample_glue.hooks"),
            ("  sample_glue.hooks ", "sample_glue.hooks"),
        ],
    )
    def test_normalise(self, raw, expected):
        assert normalise_glue_path(raw) == expected


class TestModuleGlueScanner:
    def test_satisfies_protocol(self):
        assert isinstance(ModuleGlueScanner(), GlueScanner)

    def test_pairs_in_module_then_definition_order(self):
        pairs = list(ModuleGlueScanner().scan(["sample_glue"]))
        described = [(m.type.name, h.name, h.owner.__name__ if h.owner else None) for m, h in pairs]
        assert described == [
            ("Advice", "as_admin", "AdminAdvice"),
            ("Given", "have_cukes", "CukeSteps"),
            ("Authenticated", "have_cukes", "CukeSteps"),
            ("When", "wait", "CukeSteps"),
            ("Slow", "wait", "CukeSteps"),
            ("Then", "belly_growls", None),
            ("Before", "prepare_belly", None),
            ("Order", "prepare_belly", None),
            ("Before", "open_browser", None),
            ("After", "close_browser", None),
        ]

    def test_single_module(self):
        pairs = list(ModuleGlueScanner().scan(["sample_glue/hooks"]))
        assert [m.kind for m, _ in pairs] == [
            MarkerKind.BEFORE,
            MarkerKind.ORDER,
            MarkerKind.BEFORE,
            MarkerKind.AFTER,
        ]

    def test_modules_scanned_once(self):
        pairs = list(ModuleGlueScanner().scan(["sample_glue", "sample_glue.hooks"]))
        assert len(pairs) == 10

    def test_missing_package(self):
        with pytest.raises(GlueDiscoveryError) as exc_info:
            list(ModuleGlueScanner().scan(["no_such_glue_package"]))
        assert exc_info.value.glue_path == "no_such_glue_package"

    def test_module_raising_on_import(self):
        with pytest.raises(GlueDiscoveryError) as exc_info:
            list(ModuleGlueScanner().scan(["failing_glue"]))
        assert "failing_glue.steps" in str(exc_info.value)
        assert "fixture data missing" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.glue_path == "failing_glue"

    def test_bare_step_marker_fails_discovery(self):
        with pytest.raises(GlueDiscoveryError) as exc_info:
            list(ModuleGlueScanner().scan(["bare_marker_glue"]))
        assert isinstance(exc_info.value.cause, TypeError)
        assert "@Given needs a pattern" in str(exc_info.value)

    def test_broken_module(self):
        with pytest.raises(GlueDiscoveryError) as exc_info:
            list(ModuleGlueScanner().scan(["broken_glue"]))
        assert "broken_glue.bad_steps" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, ImportError)


class TestLoadGlue:
    def test_end_to_end(self, backend, registry, object_factory):
        backend.load_glue(["sample_glue"])
        backend.complete_registration()

        patterns = [d.identity for d in registry.step_definitions]
        assert patterns == [
            r"^I have (\d+) cukes in my belly$",
            r"^I wait (\d+) hours?$",
            r"^my belly should growl$",
            r"^as an admin (.*)$ -> ^I have (\d+) cukes in my belly$",
        ]
        assert registry.step_definitions[2].timeout == 5
        assert [h.handler.name for h in registry.before_hooks_for(["@belly"])] == [
            "prepare_belly",
            "open_browser",
        ]
        assert [h.handler.name for h in registry.after_hooks_for(["@wip"])] == []
        assert [c.__name__ for c in object_factory.added_classes] == [
            "AdminAdvice",
            "CukeSteps",
            "CukeSteps",
        ]

        match = registry.resolve_step("as an admin I have 12 cukes in my belly")
        assert isinstance(match.step_definition, AdvisedStepDefinition)
        assert match.values == ["12"]

    def test_glue_paths_default_to_settings(self, registry, object_factory):
        settings = GlueSettings(glue_paths=["sample_glue.hooks"])
        backend = GlueBackend(registry, object_factory=object_factory, settings=settings)
        backend.load_glue()
        assert len(registry.before_hooks) == 2
        assert len(registry.after_hooks) == 1

    def test_invalid_pointcut_rolls_back_package(self, backend, registry):
        with pytest.raises(InvalidPointcutError) as exc_info:
            backend.load_glue(["invalid_advice_glue"])
        assert exc_info.value.pointcut.qualified_name == "invalid_advice_glue.steps.Tracked"
        assert registry.step_definitions == ()
        assert backend.step_definitions == ()

    def test_discovery_failure_registers_nothing(self, backend, registry):
        with pytest.raises(GlueDiscoveryError):
            backend.load_glue(["sample_glue.hooks", "broken_glue"])
        assert registry.before_hooks == ()

    def test_module_raising_on_import_is_logged_and_rolled_back(self, backend, registry):
        with capture_logs() as logs:
            with pytest.raises(GlueDiscoveryError) as exc_info:
                backend.load_glue(["sample_glue.hooks", "failing_glue"])
        assert isinstance(exc_info.value.cause, RuntimeError)
        failed = [e for e in logs if e["event"] == "glue_registration_failed"]
        assert failed[0]["error_type"] == "GlueDiscoveryError"
        assert registry.before_hooks == ()
        assert registry.step_definitions == ()
