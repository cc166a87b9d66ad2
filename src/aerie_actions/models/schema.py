"""Parameter and setting schemas for actions.

An action declares its parameters and settings as a mapping of name to
``ActionValueSchema``. The union is discriminated on ``type``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Awaitable, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _SchemaBase(BaseModel):
    """Metadata shared by every value schema."""

    model_config = ConfigDict(populate_by_name=True)

    metadata: dict[str, Any] | None = None
    description: str | None = None
    required: bool | None = None
    default_value: Any = Field(default=None, alias="defaultValue")


class ActionValueSchemaBoolean(_SchemaBase):
    type: Literal["boolean"] = "boolean"


class ActionValueSchemaDuration(_SchemaBase):
    type: Literal["duration"] = "duration"


class ActionValueSchemaInt(_SchemaBase):
    type: Literal["int"] = "int"


class ActionValueSchemaReal(_SchemaBase):
    type: Literal["real"] = "real"


class ActionValueSchemaSequence(_SchemaBase):
    type: Literal["sequence"] = "sequence"


class ActionValueSchemaSequenceList(_SchemaBase):
    type: Literal["sequenceList"] = "sequenceList"


class ActionValueSchemaFile(_SchemaBase):
    type: Literal["file"] = "file"
    pattern: str


class ActionValueSchemaFileList(_SchemaBase):
    type: Literal["fileList"] = "fileList"
    pattern: str


class ActionValueSchemaSecret(_SchemaBase):
    type: Literal["secret"] = "secret"


class ActionValueSchemaString(_SchemaBase):
    type: Literal["string"] = "string"


class Variant(BaseModel):
    """One selectable option of a variant schema."""

    key: str
    label: str


class ActionValueSchemaVariant(_SchemaBase):
    type: Literal["variant"] = "variant"
    variants: list[Variant]


class ActionValueSchemaSeries(_SchemaBase):
    type: Literal["series"] = "series"
    items: ActionValueSchema


class ActionValueSchemaStruct(_SchemaBase):
    type: Literal["struct"] = "struct"
    items: dict[str, ActionValueSchema]


ActionValueSchema = Annotated[
    Union[
        ActionValueSchemaBoolean,
        ActionValueSchemaDuration,
        ActionValueSchemaFile,
        ActionValueSchemaFileList,
        ActionValueSchemaInt,
        ActionValueSchemaReal,
        ActionValueSchemaSequence,
        ActionValueSchemaSequenceList,
        ActionValueSchemaSecret,
        ActionValueSchemaSeries,
        ActionValueSchemaString,
        ActionValueSchemaStruct,
        ActionValueSchemaVariant,
    ],
    Field(discriminator="type"),
]

ActionValueSchemaSeries.model_rebuild()
ActionValueSchemaStruct.model_rebuild()

ActionParameterDefinitions = dict[str, ActionValueSchema]
ActionSettingDefinitions = dict[str, ActionValueSchema]

_definitions_adapter: TypeAdapter[dict[str, Any]] = TypeAdapter(ActionParameterDefinitions)


def parse_definitions(raw: dict[str, Any]) -> dict[str, Any]:
    """Validate a raw parameter/setting definitions mapping (e.g. from JSON)."""
    return _definitions_adapter.validate_python(raw)


class ActionParameterDefinition(BaseModel):
    """A named parameter and its schema."""

    name: str
    schema_: ActionValueSchema = Field(alias="schema")

    model_config = ConfigDict(populate_by_name=True)


_PYTHON_TYPES: dict[str, type] = {
    "boolean": bool,
    "string": str,
    "duration": str,
    "int": int,
    "real": float,
    "sequence": str,
    "sequenceList": list,
    "file": str,
    "fileList": list,
    "secret": str,
    "series": list,
    "struct": dict,
    "variant": Variant,
}


def python_type(schema: Any) -> type:
    """Return the Python type a value of ``schema`` is delivered as."""
    return _PYTHON_TYPES[schema.type]


class ActionStatus(str, Enum):
    """Outcome of an action run."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ActionResult(BaseModel):
    """Value returned by an action's main function."""

    model_config = ConfigDict(extra="allow")

    status: ActionStatus
    data: Any = None


# main(parameters, settings, actions_api) -> ActionResult
ActionMain = Callable[[dict[str, Any], dict[str, Any], Any], Awaitable[ActionResult]]
