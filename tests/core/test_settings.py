"""Tests for stepglue.core.settings module."""

import pytest
from pydantic import ValidationError

from stepglue.core.settings import GlueSettings, clear_settings_cache, get_settings


class TestGlueSettings:
    def test_defaults(self):
        settings = GlueSettings()
        assert settings.glue_paths == []
        assert settings.default_step_timeout == 0
        assert settings.ready_timeout_seconds == 30.0
        assert settings.log_level == "INFO"
        assert settings.log_format == "console"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("STEPGLUE_GLUE_PATHS", '["features.steps", "features.hooks"]')
        monkeypatch.setenv("STEPGLUE_DEFAULT_STEP_TIMEOUT", "250")
        settings = GlueSettings()
        assert settings.glue_paths == ["features.steps", "features.hooks"]
        assert settings.default_step_timeout == 250

    def test_log_level_is_normalised(self):
        assert GlueSettings(log_level="debug").log_level == "DEBUG"

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValidationError):
            GlueSettings(log_level="chatty")

    def test_rejects_negative_timeout(self):
        with pytest.raises(ValidationError):
            GlueSettings(default_step_timeout=-1)


class TestGetSettings:
    def test_is_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("STEPGLUE_LOG_LEVEL", "WARNING")
        assert get_settings() is first
        reloaded = get_settings(_force_reload=True)
        assert reloaded.log_level == "WARNING"

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
