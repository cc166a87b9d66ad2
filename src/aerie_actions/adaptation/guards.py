"""Runtime hooks for adaptation code compiled with RestrictedPython.

RestrictedPython rewrites attribute reads into ``_getattr_(ob, name)`` and
attribute or item stores into ``_write_(ob).name = value``. The hooks here
decide what an adaptation may reach and what it may modify:

* names starting with ``_`` and modules are never readable;
* objects the adaptation did not create itself (capabilities, host classes,
  host functions, enum members) are never writable.
"""

from __future__ import annotations

import operator
from enum import Enum
from types import BuiltinFunctionType, FunctionType, MethodType, ModuleType
from typing import Any, Callable

from RestrictedPython.Guards import (
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

from aerie_actions.adaptation.registry import Capability, UnavailableCapability

# ``__name__`` of adaptation globals, inherited by every class and function it defines
ADAPTATION_MODULE = "adaptation"

_MISSING = object()

_SHARED_TYPES = (ModuleType, Capability, UnavailableCapability)
_DEFINITION_TYPES = (type, FunctionType, BuiltinFunctionType, MethodType, Enum)

_INPLACE_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
    "@=": operator.imatmul,
}


def guarded_getattr(ob: Any, name: str, *default: Any) -> Any:
    """``getattr`` for adaptations: no private names, no modules."""
    value = safer_getattr(ob, name, _MISSING)
    if value is _MISSING:
        if default:
            return default[0]
        raise AttributeError(f"{type(ob).__name__!r} object has no attribute {name!r}")
    if isinstance(value, ModuleType):
        raise AttributeError(f"{name!r} is a module and is not reachable from an adaptation")
    return value


def guarded_write(ob: Any) -> Any:
    """Return ``ob`` if the adaptation may modify it, else raise ``TypeError``."""
    if isinstance(ob, _SHARED_TYPES) or (
        isinstance(ob, _DEFINITION_TYPES)
        and getattr(ob, "__module__", None) != ADAPTATION_MODULE
    ):
        raise TypeError(f"{ob!r} is shared with the host and cannot be modified")
    return ob


def guarded_setattr(ob: Any, name: str, value: Any) -> None:
    if name.startswith("_"):
        raise AttributeError(f"{name!r} is an invalid attribute name because it starts with '_'")
    setattr(guarded_write(ob), name, value)


def guarded_delattr(ob: Any, name: str) -> None:
    if name.startswith("_"):
        raise AttributeError(f"{name!r} is an invalid attribute name because it starts with '_'")
    delattr(guarded_write(ob), name)


def inplace_var(op: str, target: Any, value: Any) -> Any:
    return _INPLACE_OPERATORS[op](target, value)


def apply_call(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


def restricted_globals() -> dict[str, Any]:
    """Hook names RestrictedPython-compiled code expects in its globals."""
    return {
        "__metaclass__": type,
        "_getattr_": guarded_getattr,
        "_getitem_": operator.getitem,
        "_getiter_": iter,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_write_": guarded_write,
        "_inplacevar_": inplace_var,
        "_apply_": apply_call,
    }
