"""
Tests for service settings and logging setup.
"""

import logging

import pytest

from src.utils.config import get_settings, reload_settings
from src.utils.logging import NOISY_LOGGERS, setup_logging


@pytest.fixture
def restore_settings():
    yield
    reload_settings()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSettings:
    """Tests for Settings loading."""

    def test_environment_overrides(self, monkeypatch, restore_settings):
        """Environment variables override defaults after reload."""
        monkeypatch.setenv("PROTOCOL_API_URL", "https://example.supabase.co/rest/v1")
        monkeypatch.setenv("PROTOCOL_CACHE_TTL_SECONDS", "30")
        settings = reload_settings()
        assert settings.protocol_api_url == "https://example.supabase.co/rest/v1"
        assert settings.protocol_cache_ttl_seconds == 30.0
        assert get_settings() is settings

    def test_defaults(self, monkeypatch, restore_settings):
        """Unset variables fall back to defaults."""
        monkeypatch.delenv("MAX_CONCURRENT_EVALUATIONS", raising=False)
        monkeypatch.delenv("REPOSITORY_TIMEOUT_SECONDS", raising=False)
        settings = reload_settings()
        assert settings.max_concurrent_evaluations == 8
        assert settings.repository_timeout_seconds == 10.0


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_and_quiet_loggers(self, restore_root_logger):
        """The root level is set and noisy loggers are quieted."""
        setup_logging(level="debug", log_file="")
        assert logging.getLogger().level == logging.DEBUG
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_file_handler(self, tmp_path, restore_root_logger):
        """A log file receives records."""
        log_file = tmp_path / "matching.log"
        setup_logging(level="INFO", log_file=str(log_file))
        logging.getLogger("src.protocol_matching.engine").info("matched 3 protocols")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "matched 3 protocols" in log_file.read_text()

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        """An unknown level falls back to INFO."""
        setup_logging(level="chatty", log_file="")
        assert logging.getLogger().level == logging.INFO
