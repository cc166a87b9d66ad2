"""Data models for aerie-actions."""

from aerie_actions.models.records import (
    AdaptationRecord,
    Parcel,
    ReadDictionaryResult,
    ReadParcelResult,
    ReadSequenceResult,
    SequenceListResult,
)
from aerie_actions.models.schema import (
    ActionMain,
    ActionParameterDefinition,
    ActionResult,
    ActionStatus,
    ActionValueSchema,
    Variant,
    parse_definitions,
    python_type,
)

__all__ = [
    "ActionMain",
    "ActionParameterDefinition",
    "ActionResult",
    "ActionStatus",
    "ActionValueSchema",
    "AdaptationRecord",
    "Parcel",
    "ReadDictionaryResult",
    "ReadParcelResult",
    "ReadSequenceResult",
    "SequenceListResult",
    "Variant",
    "parse_definitions",
    "python_type",
]
