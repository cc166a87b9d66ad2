"""Configuration management for aerie-actions."""

import os
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# AERIE_ACTIONS_HOME holds an optional .env shared by all actions on a host
_actions_home = Path(os.environ.get("AERIE_ACTIONS_HOME", os.path.expanduser("~/.aerie-actions")))
_env_files = [
    str(_actions_home / ".env"),
    ".env.local",
    ".env",
]


class Settings(BaseSettings):
    """SDK settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=tuple(_env_files),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # File stores, exposed to actions as ActionsAPI.action_file_store / sequencing_file_store
    action_file_store: str = "action_file_store"
    sequencing_file_store: str = "sequencing_file_store"

    # Aerie services
    aerie_url: str = "http://localhost:8080"
    workspace_url: str = "http://localhost:28000"
    http_timeout_seconds: float = 30.0

    # Relational store, only used by the CLI; actions receive a connection
    database_url: str = "postgresql://aerie@localhost:5432/aerie"

    # Sequence adaptations
    adaptation_timeout_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
