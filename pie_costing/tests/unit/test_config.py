"""Unit tests for Config properties.

Each property is tested for its default, its PIE_COSTING_* environment
override and the fallback on invalid values.
"""

import logging
from pathlib import Path

import pytest

from pie_costing.utils.config import Config, get_config, get_database_url, reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    for name in (
        "PIE_COSTING_ENV",
        "PIE_COSTING_DATABASE_URL",
        "PIE_COSTING_DB_TIMEOUT",
        "PIE_COSTING_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestDatabaseConfigProperties:
    def test_production_database_under_documents(self):
        config = Config()
        assert config.is_production
        assert config.database_path == Path.home() / "Documents" / "PieCosting" / "pie_costing.db"
        assert config.database_url.startswith("sqlite:///")
        assert config.database_url.endswith("pie_costing.db")

    def test_development_database_in_project(self):
        config = Config("development")
        assert config.is_development
        assert config.database_path.parent.name == "data"

    def test_database_url_env_override(self, monkeypatch):
        monkeypatch.setenv("PIE_COSTING_DATABASE_URL", "sqlite:///:memory:")
        assert Config().database_url == "sqlite:///:memory:"
        assert get_database_url() == "sqlite:///:memory:"

    def test_db_timeout_default(self):
        assert Config().db_timeout == 30

    def test_db_timeout_env_override(self, monkeypatch):
        monkeypatch.setenv("PIE_COSTING_DB_TIMEOUT", "60")
        assert Config().db_timeout == 60

    @pytest.mark.parametrize("raw", ["invalid", "0", "-4"])
    def test_db_timeout_invalid_uses_default(self, monkeypatch, caplog, raw):
        monkeypatch.setenv("PIE_COSTING_DB_TIMEOUT", raw)
        with caplog.at_level(logging.WARNING):
            assert Config().db_timeout == 30
        assert "Invalid PIE_COSTING_DB_TIMEOUT" in caplog.text


class TestLoggingConfig:
    def test_log_level_default(self):
        assert Config().log_level == logging.INFO

    def test_log_level_env_override(self, monkeypatch):
        monkeypatch.setenv("PIE_COSTING_LOG_LEVEL", "debug")
        assert Config().log_level == logging.DEBUG

    def test_log_level_invalid_uses_info(self, monkeypatch, caplog):
        monkeypatch.setenv("PIE_COSTING_LOG_LEVEL", "chatty")
        with caplog.at_level(logging.WARNING):
            assert Config().log_level == logging.INFO
        assert "Invalid PIE_COSTING_LOG_LEVEL" in caplog.text


class TestConfigSingleton:
    def test_environment_from_env_var(self, monkeypatch):
        monkeypatch.setenv("PIE_COSTING_ENV", "development")
        assert get_config().is_development

    def test_singleton_keeps_first_environment(self, caplog):
        first = get_config("development")
        with caplog.at_level(logging.WARNING):
            second = get_config("production")

        assert second is first
        assert second.environment == "development"
        assert "singleton already exists" in caplog.text
