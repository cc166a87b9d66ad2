"""Tests for settings."""

from __future__ import annotations

import pytest

from aerie_actions.adaptation.executor import SandboxExecutor
from aerie_actions.utils.config import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test file store names fall back to their defaults."""
        monkeypatch.delenv("ACTION_FILE_STORE", raising=False)
        monkeypatch.delenv("SEQUENCING_FILE_STORE", raising=False)

        settings = Settings(_env_file=None)

        assert settings.action_file_store == "action_file_store"
        assert settings.sequencing_file_store == "sequencing_file_store"
        assert settings.adaptation_timeout_seconds == 10.0

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test env vars override defaults."""
        monkeypatch.setenv("ACTION_FILE_STORE", "/mnt/actions")
        monkeypatch.setenv("ADAPTATION_TIMEOUT_SECONDS", "2.5")

        settings = Settings(_env_file=None)

        assert settings.action_file_store == "/mnt/actions"
        assert settings.adaptation_timeout_seconds == 2.5

    def test_executor_timeout_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the sandbox picks up the configured timeout."""
        monkeypatch.setenv("ADAPTATION_TIMEOUT_SECONDS", "3")
        get_settings.cache_clear()
        try:
            assert SandboxExecutor().timeout_seconds == 3.0
        finally:
            get_settings.cache_clear()
