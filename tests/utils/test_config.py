"""
Tests for centralized configuration system.
Verifies environment variable loading and default values.
"""
import pytest
from ironqueue.config import Settings, get_settings


class TestConfigurationSystem:
    """Test suite for configuration management."""

    def test_default_values(self, monkeypatch):
        """Verify all configuration fields have sensible defaults."""
        for name in ("IRON_QUEUE", "IRON_ENCRYPT", "IRON_TIMEOUT", "IRON_HOST", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.iron_host == "mq-aws-us-east-1-1.iron.io"
        assert settings.iron_protocol == "https"
        assert settings.iron_port == 443
        assert settings.iron_api_version == 3
        assert settings.iron_queue == "default"
        assert settings.iron_encrypt is False
        assert settings.iron_timeout == 60
        assert settings.iron_push_message_id_header == "iron-message-id"
        assert settings.worker_enabled is False
        assert settings.log_level == "INFO"
        assert settings.enable_structured_logging is False

    def test_environment_variable_override(self, monkeypatch):
        """Verify environment variables override defaults."""
        get_settings.cache_clear()

        monkeypatch.setenv("IRON_PROJECT_ID", "proj")
        monkeypatch.setenv("IRON_TOKEN", "secret")
        monkeypatch.setenv("IRON_QUEUE", "emails")
        monkeypatch.setenv("IRON_ENCRYPT", "true")
        monkeypatch.setenv("IRON_TIMEOUT", "120")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        try:
            settings = get_settings()

            assert settings.iron_project_id == "proj"
            assert settings.iron_token == "secret"
            assert settings.iron_queue == "emails"
            assert settings.iron_encrypt is True
            assert settings.iron_timeout == 120
            assert settings.log_level == "DEBUG"
        finally:
            get_settings.cache_clear()

    def test_iron_base_url(self):
        settings = Settings(_env_file=None, iron_host="mq.example.com", iron_port=8080, iron_protocol="http")

        assert settings.iron_base_url == "http://mq.example.com:8080/3"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, log_level="VERBOSE")

    def test_settings_singleton(self):
        """get_settings returns the cached instance."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
