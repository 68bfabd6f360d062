"""Tests for settings, database URL handling and logging setup."""

import pytest
import structlog

from blocker_workflow.config import Settings
from blocker_workflow.db.base import get_database_url
from blocker_workflow.logging_config import configure_logging


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "NOTIFICATIONS_ENABLED", "LOG_FORMAT", "API_PORT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.app_name == "Blocker Workflow"
        assert settings.database_url == "sqlite:///./blocker_workflow.db"
        assert settings.notifications_enabled is True
        assert settings.log_format == "json"
        assert settings.api_port == 8000

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATIONS_ENABLED", "false")
        monkeypatch.setenv("API_PORT", "9100")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.notifications_enabled is False
        assert settings.api_port == 9100
        assert settings.log_level == "debug"


class TestDatabaseUrl:
    def test_explicit_url_wins(self):
        assert get_database_url("sqlite:///tmp/x.db") == "sqlite:///tmp/x.db"

    def test_async_postgres_driver_is_normalised(self):
        url = get_database_url("postgresql+asyncpg://app:secret@db:5432/blockers")
        assert url == "postgresql+psycopg://app:secret@db:5432/blockers"

    def test_async_sqlite_driver_is_normalised(self):
        assert get_database_url("sqlite+aiosqlite:///./dev.db") == "sqlite:///./dev.db"

    def test_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./from-env.db")
        assert get_database_url() == "sqlite:///./from-env.db"


class TestLogging:
    @pytest.fixture(autouse=True)
    def _restore_structlog(self):
        yield
        structlog.reset_defaults()

    def test_configure_console_logging(self):
        configure_logging(level="DEBUG", fmt="console")
        structlog.get_logger().debug("logging_configured", fmt="console")

    def test_configure_json_logging(self):
        configure_logging(level="WARNING", fmt="json")
        structlog.get_logger().warning("logging_configured", fmt="json")
