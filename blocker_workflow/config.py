"""
Runtime settings, read from the environment and an optional ``.env`` file.

Every field maps to the upper-cased environment variable of the same name
(``NOTIFICATIONS_ENABLED``, ``LOG_FORMAT``, ...).
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Blocker Workflow"
    environment: str = "development"

    # HTTP server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    database_url: str = "sqlite:///./blocker_workflow.db"

    log_level: str = "INFO"
    log_format: str = Field(default="json", description="'json' or 'console'")

    notifications_enabled: bool = Field(
        default=True,
        description="Write inbox rows for the users a transition concerns",
    )

    # GET /blockers paging
    default_page_size: int = Field(default=100, ge=1)
    max_page_size: int = Field(default=1000, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, read once."""
    return Settings()
