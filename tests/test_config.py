"""Tests for settings and logging setup."""

import logging

import pytest
import structlog
from pydantic import ValidationError

from py_voronoi.config import Settings
from py_voronoi.utils import configure_logging


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("LOG_LEVEL", "LOG_FORMAT", "DEFAULT_WIDTH", "MAX_SITE_COUNT"):
            monkeypatch.delenv(f"PY_VORONOI_{name}", raising=False)

        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.log_format == "json"
        assert settings.default_width == 1000.0
        assert settings.max_site_count == 20000

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PY_VORONOI_DEFAULT_WIDTH", "640")
        monkeypatch.setenv("PY_VORONOI_RELAXATION_ITERATIONS", "2")

        settings = Settings()
        assert settings.default_width == 640.0
        assert settings.relaxation_iterations == 2

    def test_invalid_value_rejected(self, monkeypatch):
        monkeypatch.setenv("PY_VORONOI_DEFAULT_HEIGHT", "-1")
        with pytest.raises(ValidationError):
            Settings()


class TestConfigureLogging:
    """Test structlog configuration."""

    def teardown_method(self):
        structlog.reset_defaults()

    @pytest.mark.parametrize("log_format", ["plain", "json"])
    def test_configures_level_and_renderer(self, log_format):
        configure_logging(Settings(log_level="debug", log_format=log_format))

        assert logging.getLogger().level == logging.DEBUG
        processors = structlog.get_config()["processors"]
        expected = (structlog.dev.ConsoleRenderer if log_format == "plain"
                    else structlog.processors.JSONRenderer)
        assert isinstance(processors[-1], expected)

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(Settings(log_level="chatty"))
        assert logging.getLogger().level == logging.INFO
