"""Pytest fixtures and configuration."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from aerie_actions.adaptation.registry import CapabilityRegistry, default_registry
from aerie_actions.db import queries


class FakeSequencingDB:
    """In-memory stand-in for an asyncpg connection to the sequencing schema.

    Only answers the parcel-by-workspace and adaptation-by-id reads; every
    call is recorded so tests can assert which steps ran.
    """

    def __init__(self) -> None:
        self.parcels: dict[int, dict[str, Any]] = {}
        self.adaptations: dict[int, dict[str, Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def bind_parcel(self, workspace_id: int, **parcel: Any) -> None:
        self.parcels[workspace_id] = {"workspace_id": workspace_id, **parcel}

    def add_adaptation(self, adaptation_id: int, source: str | None) -> None:
        self.adaptations[adaptation_id] = {"id": adaptation_id, "adaptation": source}

    async def fetchrow(self, sql: str, *args: Any) -> dict[str, Any] | None:
        if sql == queries.READ_PARCEL_FOR_WORKSPACE_SQL:
            self.calls.append(("parcel", args))
            return self.parcels.get(args[0])
        if sql == queries.READ_ADAPTATION_SQL:
            self.calls.append(("adaptation", args))
            return self.adaptations.get(args[0])
        raise AssertionError(f"unexpected query: {sql}")

    def steps(self) -> list[str]:
        return [step for step, _ in self.calls]


@pytest.fixture
def fake_db() -> FakeSequencingDB:
    """Sequencing database with nothing bound."""
    return FakeSequencingDB()


@pytest.fixture
def registry() -> CapabilityRegistry:
    """Default capability registry."""
    return default_registry()


@pytest.fixture
def mock_db() -> MagicMock:
    """Create a mock asyncpg connection."""
    db = MagicMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchrow = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="INSERT 0 1")
    return db


@pytest.fixture
def mock_httpx_client() -> MagicMock:
    """Create a mock httpx client."""
    client = MagicMock()
    client.get = AsyncMock()
    client.post = AsyncMock()
    client.put = AsyncMock()
    client.delete = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def sample_sequence_row() -> dict[str, Any]:
    """Sample user_sequence row."""
    return {
        "name": "seq_a",
        "id": 11,
        "workspace_id": 7,
        "parcel_id": 3,
        "definition": "C CMD_NOOP",
        "seq_json": None,
        "owner": "alice",
        "created_at": "2026-01-14T00:00:00+00:00",
        "updated_at": "2026-01-14T00:00:00+00:00",
    }
