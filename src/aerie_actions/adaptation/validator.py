"""Shape check for evaluated adaptations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from aerie_actions.adaptation.errors import AdaptationShapeError

# What a successful load hands to the action: a mapping or object of functions
LoadedAdaptation = Any

_PRIMITIVES = (bool, int, float, complex, str, bytes, bytearray)


def validate(
    raw: Any,
    adaptation_id: Any,
    parcel_id: int | None,
    *,
    workspace_id: int | None = None,
) -> LoadedAdaptation:
    """Return ``raw`` unchanged if it is a structured object.

    Raises:
        AdaptationShapeError: ``raw`` is ``None`` or a primitive value.
    """
    if raw is None or isinstance(raw, _PRIMITIVES):
        raise AdaptationShapeError(
            f"Sequence adaptation {adaptation_id} for parcel {parcel_id} evaluated to "
            f"{type(raw).__name__}, expected an object of functions",
            value=raw,
            adaptation_id=adaptation_id,
            parcel_id=parcel_id,
            workspace_id=workspace_id,
        )
    return raw


def adaptation_function(adaptation: LoadedAdaptation, name: str) -> Callable[..., Any] | None:
    """Look up a callable member of a loaded adaptation by name.

    Adaptations may export a dict or populate ``exports`` attributes; both
    shapes are supported. Returns ``None`` if the member is missing or not
    callable.
    """
    if isinstance(adaptation, Mapping):
        member = adaptation.get(name)
    else:
        member = getattr(adaptation, name, None)
    return member if callable(member) else None
