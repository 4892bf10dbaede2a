"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

from ci_models.config import Settings, get_settings, print_settings_json


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        expected_db = Path.home() / ".local" / "share" / "ci-models" / "db.sqlite"
        assert settings.db_url == f"sqlite:///{expected_db}"
        assert settings.ui_uri == "http://localhost:4200"
        assert settings.api_uri is None
        assert settings.log_level == "INFO"

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "CI_MODELS_DB_URL": "sqlite:///:memory:",
                "CI_MODELS_UI_URI": "https://ci.example.com",
                "CI_MODELS_API_URI": "https://api.ci.example.com",
                "CI_MODELS_LOG_LEVEL": "DEBUG",
            },
        ):
            settings = Settings()
            assert settings.db_url == "sqlite:///:memory:"
            assert settings.ui_uri == "https://ci.example.com"
            assert settings.api_uri == "https://api.ci.example.com"
            assert settings.log_level == "DEBUG"

    def test_unprefixed_env_ignored(self) -> None:
        """Only CI_MODELS_ variables should be read."""
        with patch.dict(os.environ, {"UI_URI": "https://elsewhere"}):
            settings = Settings()
            assert settings.ui_uri != "https://elsewhere"


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings(ui_uri="https://ci.example.com")
        json_str = print_settings_json(settings)

        parsed = json.loads(json_str)

        assert parsed["ui_uri"] == "https://ci.example.com"
        assert set(parsed) == {"db_url", "ui_uri", "api_uri", "log_level"}

    def test_print_settings_json_default(self) -> None:
        """print_settings_json without args should use default settings."""
        json_str = print_settings_json()
        parsed = json.loads(json_str)
        assert "db_url" in parsed
