"""SQL for the sequencing schema.

Each ``query_*`` helper takes an asyncpg-compatible connection (anything with
``fetch``, ``fetchrow`` and ``execute`` coroutines) and returns plain rows.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

logger = logging.getLogger(__name__)

DictionaryKind = Literal["channel_dictionary", "command_dictionary", "parameter_dictionary"]

DICTIONARY_KINDS: frozenset[str] = frozenset(
    {"channel_dictionary", "command_dictionary", "parameter_dictionary"}
)

LIST_SEQUENCES_SQL = """
    select name, id, workspace_id, parcel_id, owner, created_at, updated_at
      from sequencing.user_sequence
      where workspace_id = $1;
"""

READ_SEQUENCE_SQL = """
    select name, id, workspace_id, parcel_id, definition, seq_json, owner, created_at, updated_at
      from sequencing.user_sequence
      where name = $1
        and workspace_id = $2;
"""

# Overwrite the definition of an existing sequence, otherwise create it
WRITE_SEQUENCE_SQL = """
    with updated as (
      update sequencing.user_sequence
        set definition = $3
        where name = $1 and workspace_id = $2
        returning *
    )
    insert into sequencing.user_sequence (name, workspace_id, definition, parcel_id)
      select $1, $2, $3, $4
      where not exists (select 1 from updated);
"""

_PARCEL_COLUMNS = """
    id, name, workspace_id, command_dictionary_id, channel_dictionary_id,
    parameter_dictionary_id, sequence_adaptation_id, created_at, owner, updated_at, updated_by
"""

READ_PARCEL_SQL = f"""
    select {_PARCEL_COLUMNS}
      from sequencing.parcel
      where id = $1;
"""

READ_PARCEL_FOR_WORKSPACE_SQL = f"""
    select {_PARCEL_COLUMNS}
      from sequencing.parcel
      where workspace_id = $1;
"""

READ_ADAPTATION_SQL = """
    select id, name, adaptation, owner, created_at, updated_at, updated_by
      from sequencing.sequence_adaptation
      where id = $1;
"""


def dictionary_query(kind: str) -> str:
    """Return the select statement for one of the dictionary tables."""
    if kind not in DICTIONARY_KINDS:
        raise ValueError(f"Unknown dictionary kind: {kind!r}")
    return f"""
    select id, dictionary_path, dictionary_file_path, mission, version, parsed_json, created_at, updated_at
      from sequencing.{kind}
      where id = $1;
"""


async def query_list_sequences(db: Any, workspace_id: int) -> list[Any]:
    return await db.fetch(LIST_SEQUENCES_SQL, workspace_id)


async def query_read_sequence(db: Any, name: str, workspace_id: int) -> Any | None:
    return await db.fetchrow(READ_SEQUENCE_SQL, name, workspace_id)


async def query_write_sequence(
    db: Any,
    name: str,
    workspace_id: int,
    definition: str,
    parcel_id: int,
) -> str:
    """Update-or-insert a sequence; returns the asyncpg command status."""
    logger.debug(f"Writing sequence {name!r} in workspace {workspace_id} (parcel {parcel_id})")
    return await db.execute(WRITE_SEQUENCE_SQL, name, workspace_id, definition, parcel_id)


async def query_read_parcel(db: Any, parcel_id: int) -> Any | None:
    return await db.fetchrow(READ_PARCEL_SQL, parcel_id)


async def query_read_parcel_for_workspace(db: Any, workspace_id: int) -> Any | None:
    return await db.fetchrow(READ_PARCEL_FOR_WORKSPACE_SQL, workspace_id)


async def query_read_adaptation(db: Any, adaptation_id: int) -> Any | None:
    return await db.fetchrow(READ_ADAPTATION_SQL, adaptation_id)


async def query_read_dictionary(db: Any, kind: str, dictionary_id: int) -> Any | None:
    return await db.fetchrow(dictionary_query(kind), dictionary_id)
