"""ActionsAPI - the object handed to an action's ``main``."""

from __future__ import annotations

import logging
from typing import Any

from aerie_actions.adaptation.loader import AdaptationLoader
from aerie_actions.adaptation.registry import CapabilityRegistry
from aerie_actions.adaptation.validator import LoadedAdaptation
from aerie_actions.db.queries import (
    query_list_sequences,
    query_read_dictionary,
    query_read_parcel,
    query_read_sequence,
    query_write_sequence,
)
from aerie_actions.files.client import AerieClient
from aerie_actions.models.records import (
    Parcel,
    ReadDictionaryResult,
    ReadSequenceResult,
    SequenceListResult,
)
from aerie_actions.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SequenceNotFoundError(LookupError):
    """Raised when a named sequence does not exist in the workspace."""

    def __init__(self, name: str, workspace_id: int):
        self.name = name
        self.workspace_id = workspace_id
        super().__init__(f"Sequence {name} does not exist")


class ActionsAPI:
    """Workspace-scoped access to sequences, parcels, dictionaries and files.

    Args:
        db: asyncpg connection (or pool) from the action runtime
        workspace_id: workspace the action runs in
        registry: capabilities offered to sequence adaptations
        files: client for the workspace file service
        settings: SDK settings (default: cached environment settings)
    """

    def __init__(
        self,
        db: Any,
        workspace_id: int,
        registry: CapabilityRegistry | None = None,
        files: AerieClient | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.workspace_id = workspace_id
        self.registry = registry
        self.files = files or AerieClient()
        self.settings = settings or get_settings()

    @property
    def action_file_store(self) -> str:
        """Directory the action runtime mounts action files under (ACTION_FILE_STORE)."""
        return self.settings.action_file_store

    @property
    def sequencing_file_store(self) -> str:
        """Directory holding sequencing files such as dictionaries (SEQUENCING_FILE_STORE)."""
        return self.settings.sequencing_file_store

    async def list_sequences(self) -> list[SequenceListResult]:
        """List all sequences in the action's workspace."""
        rows = await query_list_sequences(self.db, self.workspace_id)
        return [SequenceListResult.from_row(row) for row in rows]

    async def read_sequence(self, name: str) -> ReadSequenceResult:
        """Read a single sequence in the workspace by name."""
        row = await query_read_sequence(self.db, name, self.workspace_id)
        if row is None:
            raise SequenceNotFoundError(name, self.workspace_id)
        return ReadSequenceResult.from_row(row)

    # TODO: decide whether parcel_id should be required once workspaces always carry a parcel
    async def write_sequence(self, name: str, definition: str, parcel_id: int = 1) -> str:
        """Overwrite the named sequence's definition, creating it if needed."""
        status = await query_write_sequence(
            self.db, name, self.workspace_id, definition, parcel_id
        )
        logger.info(f"Wrote sequence {name!r} in workspace {self.workspace_id}: {status}")
        return status

    async def read_parcel(self, parcel_id: int) -> Parcel | None:
        row = await query_read_parcel(self.db, parcel_id)
        return Parcel.from_row(row) if row is not None else None

    async def read_dictionary(self, kind: str, dictionary_id: int) -> ReadDictionaryResult | None:
        """Read a channel, command or parameter dictionary by id."""
        row = await query_read_dictionary(self.db, kind, dictionary_id)
        return ReadDictionaryResult.from_row(row) if row is not None else None

    async def load_adaptation(self) -> LoadedAdaptation:
        """Load the sequence adaptation configured for this workspace's parcel."""
        loader = AdaptationLoader(self.db, registry=self.registry)
        return await loader.load_adaptation(self.workspace_id)

    async def read_file(self, path: str) -> str:
        return await self.files.read_file(self.workspace_id, path)

    async def write_file(self, path: str, content: str | bytes) -> None:
        await self.files.write_file(self.workspace_id, path, content)

    async def list_files(self, path: str = "") -> list[dict[str, Any]]:
        return await self.files.list_files(self.workspace_id, path)
