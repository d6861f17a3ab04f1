"""Tests for core modules."""

import logging

import pytest


class TestConfig:
    """Tests for configuration management."""

    def test_default_settings(self):
        """Test default settings creation."""
        from neurogait.core.config import Settings

        settings = Settings()
        assert settings.engine.window_size == 30
        assert settings.engine.freezing_threshold == 3.0
        assert settings.detection.scan_window == 60
        assert settings.detection.merge_overlapping is True
        assert settings.scoring.fogq_cap == 12
        assert settings.scoring.fogq_high == 15

    def test_settings_from_dict(self):
        """Test settings from dictionary."""
        from neurogait.core.config import Settings

        data = {
            "engine": {"window_size": 45, "freezing_threshold": 2.5},
            "detection": {"merge_overlapping": False},
        }
        settings = Settings._from_dict(data)
        assert settings.engine.window_size == 45
        assert settings.engine.freezing_threshold == 2.5
        assert settings.detection.merge_overlapping is False
        # Untouched sections keep their defaults
        assert settings.scoring.risk_confidence == 0.85

    def test_settings_to_dict(self):
        """Test settings serialization."""
        from neurogait.core.config import Settings

        data = Settings().to_dict()
        assert set(data) == {"engine", "detection", "scoring", "logging"}
        assert data["engine"]["window_size"] == 30
        assert data["detection"]["movement_threshold"] == 0.01

    def test_settings_from_yaml(self, temp_dir):
        """Test loading settings from a YAML file."""
        from neurogait.core.config import Settings

        path = temp_dir / "settings.yaml"
        path.write_text("engine:\n  window_size: 60\nscoring:\n  fogq_cap: 20\n")

        settings = Settings.from_yaml(path)
        assert settings.engine.window_size == 60
        assert settings.scoring.fogq_cap == 20

    def test_missing_yaml_uses_defaults(self, temp_dir):
        """Test that a missing file falls back to defaults."""
        from neurogait.core.config import Settings

        settings = Settings.from_yaml(temp_dir / "nope.yaml")
        assert settings.engine.window_size == 30

    def test_empty_yaml_uses_defaults(self, temp_dir):
        """Test that an empty file falls back to defaults."""
        from neurogait.core.config import Settings

        path = temp_dir / "empty.yaml"
        path.write_text("")
        assert Settings.from_yaml(path).detection.step_lookback == 10

    @pytest.mark.parametrize("size", [0, -5])
    def test_window_size_must_be_positive(self, size):
        """Test window size validation."""
        from neurogait.core.config import EngineConfig

        with pytest.raises(ValueError):
            EngineConfig(window_size=size)

    def test_log_level_env_override(self, monkeypatch):
        """Test log level override from environment."""
        from neurogait.core.config import LoggingConfig

        monkeypatch.setenv("NEUROGAIT_LOG_LEVEL", "debug")
        assert LoggingConfig().level == "DEBUG"

    def test_log_level_uppercased(self, monkeypatch):
        """Test configured level is normalized."""
        from neurogait.core.config import LoggingConfig

        monkeypatch.delenv("NEUROGAIT_LOG_LEVEL", raising=False)
        assert LoggingConfig(level="warning").level == "WARNING"

    def test_reload_settings(self, temp_dir):
        """Test reloading the global settings from a file."""
        from neurogait.core.config import get_settings, reload_settings

        path = temp_dir / "settings.yaml"
        path.write_text("engine:\n  freezing_threshold: 4.0\n")

        try:
            settings = reload_settings(path)
            assert settings.engine.freezing_threshold == 4.0
            assert get_settings() is settings
        finally:
            reload_settings(temp_dir / "missing.yaml")


class TestLogging:
    """Tests for logging setup."""

    def test_get_logger_is_namespaced(self):
        """Test loggers live under the package logger."""
        from neurogait.core.logging import get_logger

        assert get_logger("engine").name == "neurogait.engine"
        assert get_logger("neurogait.analysis").name == "neurogait.analysis"

    def test_configure_logging_sets_level(self):
        """Test level configuration on the package logger."""
        from neurogait.core.logging import configure_logging

        configure_logging("DEBUG")
        assert logging.getLogger("neurogait").level == logging.DEBUG
        configure_logging("INFO")
        assert logging.getLogger("neurogait").level == logging.INFO

    def test_configure_logging_installs_one_handler(self):
        """Test repeated configuration does not stack handlers."""
        from rich.logging import RichHandler

        from neurogait.core.logging import configure_logging

        configure_logging("INFO")
        configure_logging("INFO")
        handlers = [
            h for h in logging.getLogger("neurogait").handlers if isinstance(h, RichHandler)
        ]
        assert len(handlers) == 1
