"""Row models for the sequencing schema.

Only the columns the SDK selects are modelled; everything is read from
``sequencing.*`` tables owned by the Aerie sequencing service.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class _Row(BaseModel):
    """Base for rows returned by asyncpg."""

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Any:
        """Build a model from an asyncpg ``Record`` or a plain mapping."""
        return cls.model_validate(dict(row))


class SequenceListResult(_Row):
    """A sequence as listed for a workspace."""

    name: str
    id: int
    workspace_id: int
    parcel_id: int | None = None
    owner: str | None = None
    created_at: datetime | str
    updated_at: datetime | str


class ReadSequenceResult(SequenceListResult):
    """A sequence including its definition."""

    definition: str
    seq_json: Any = None


class ReadDictionaryResult(_Row):
    """A channel, command or parameter dictionary."""

    id: int
    dictionary_path: str | None = None
    dictionary_file_path: str | None = None
    mission: str
    version: str | int
    parsed_json: Any = None
    created_at: datetime | str
    updated_at: datetime | str


class Parcel(_Row):
    """Configuration bundle binding dictionaries and one adaptation to a workspace."""

    id: int
    name: str | None = None
    workspace_id: int | None = None
    command_dictionary_id: int | None = None
    channel_dictionary_id: int | None = None
    parameter_dictionary_id: int | None = None
    # Kept raw; the adaptation loader decides whether it is usable
    sequence_adaptation_id: Any = Field(default=None)
    owner: str | None = None
    created_at: datetime | str | None = None
    updated_at: datetime | str | None = None
    updated_by: str | None = None


ReadParcelResult = Parcel


class AdaptationRecord(_Row):
    """Stored source text of a sequence adaptation."""

    id: int
    name: str | None = None
    adaptation: str | None = None
    owner: str | None = None
    created_at: datetime | str | None = None
    updated_at: datetime | str | None = None
    updated_by: str | None = None
