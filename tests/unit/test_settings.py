"""Unit tests for settings and logging configuration."""

import logging

import pytest


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        from agentflow_client.settings import get_settings

        settings = get_settings()
        assert settings.base_url == "http://127.0.0.1:8000"
        assert settings.auth_token is None
        assert settings.timeout == 300.0
        assert settings.recursion_limit == 25
        assert settings.debug is False

    def test_env_overrides(self, monkeypatch):
        from agentflow_client.settings import get_settings

        monkeypatch.setenv("AGENTFLOW_TIMEOUT", "2.5")
        monkeypatch.setenv("AGENTFLOW_DEBUG", "true")
        monkeypatch.setenv("AGENTFLOW_AUTH_TOKEN", "s3cret")

        settings = get_settings()
        assert settings.timeout == 2.5
        assert settings.debug is True
        assert settings.auth_token.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(settings)

    def test_cached(self):
        from agentflow_client.settings import get_settings

        assert get_settings() is get_settings()

    def test_rejects_non_positive_timeout(self, monkeypatch):
        from pydantic import ValidationError

        from agentflow_client.settings import Settings

        monkeypatch.setenv("AGENTFLOW_TIMEOUT", "0")
        with pytest.raises(ValidationError):
            Settings()


class TestConfigureLogging:
    """Tests for configure_logging()."""

    @pytest.fixture(autouse=True)
    def _restore_package_logger(self):
        logger = logging.getLogger("agentflow_client")
        handlers, level = list(logger.handlers), logger.level
        yield
        logger.handlers[:] = handlers
        logger.setLevel(level)

    def test_installs_single_handler(self):
        from agentflow_client.logging_config import configure_logging

        configure_logging("DEBUG")
        configure_logging("INFO")

        logger = logging.getLogger("agentflow_client")
        ours = [h for h in logger.handlers if getattr(h, "_agentflow_handler", False)]
        assert len(ours) == 1
        assert logger.level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_level_from_settings(self, monkeypatch):
        from agentflow_client.logging_config import configure_logging

        monkeypatch.setenv("AGENTFLOW_LOG_LEVEL", "ERROR")
        configure_logging()
        assert logging.getLogger("agentflow_client").level == logging.ERROR

    def test_debug_client_enables_debug_logging(self):
        from agentflow_client.client import AgentFlowClient

        AgentFlowClient(base_url="http://localhost:8000", debug=True)
        assert logging.getLogger("agentflow_client").level == logging.DEBUG
