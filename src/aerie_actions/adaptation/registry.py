"""Capabilities that adaptation source is allowed to import.

Adaptations are written against the sequence editor's library set. Only the
pieces needed to evaluate them outside the editor are handed out; editor/UI
primitives resolve to ``UnavailableCapability`` stubs and every other name
resolves to ``None``.

Host modules are never registered directly. ``default_registry`` copies an
explicit list of functions, classes and constants out of each module into a
read-only ``Capability``, so nothing like ``typing.sys`` is reachable and no
load can rebind a name that another load (or the host) relies on.
"""

from __future__ import annotations

import importlib
from types import MappingProxyType, ModuleType
from typing import Any, Iterable, Iterator, Mapping

# Names copied out of each pure computation module
SAFE_CAPABILITIES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "json": ("dumps", "loads", "JSONDecodeError", "JSONDecoder", "JSONEncoder"),
    "re": (
        "compile", "search", "match", "fullmatch", "split", "findall", "finditer",
        "sub", "subn", "escape", "error", "Pattern", "Match",
        "A", "ASCII", "I", "IGNORECASE", "M", "MULTILINE", "S", "DOTALL", "X", "VERBOSE",
    ),
    "math": (
        "pi", "e", "tau", "inf", "nan",
        "ceil", "floor", "trunc", "fabs", "fmod", "modf", "copysign",
        "sqrt", "isqrt", "pow", "exp", "log", "log2", "log10",
        "sin", "cos", "tan", "asin", "acos", "atan", "atan2", "hypot",
        "degrees", "radians", "isclose", "isfinite", "isinf", "isnan",
        "fsum", "prod", "gcd", "comb", "perm",
    ),
    "datetime": ("datetime", "date", "time", "timedelta", "timezone", "MINYEAR", "MAXYEAR"),
    "collections": ("OrderedDict", "defaultdict", "Counter", "deque", "namedtuple", "ChainMap"),
    "itertools": (
        "accumulate", "chain", "combinations", "combinations_with_replacement", "compress",
        "count", "cycle", "dropwhile", "filterfalse", "groupby", "islice", "pairwise",
        "permutations", "product", "repeat", "starmap", "takewhile", "tee", "zip_longest",
    ),
    "functools": (
        "reduce", "partial", "lru_cache", "cache", "cmp_to_key", "wraps",
        "total_ordering", "cached_property", "singledispatch",
    ),
    "statistics": (
        "mean", "fmean", "median", "median_low", "median_high", "mode", "multimode",
        "stdev", "pstdev", "variance", "pvariance", "StatisticsError",
    ),
    "typing": (
        "Any", "Callable", "Dict", "Iterable", "Iterator", "List", "Literal", "Mapping",
        "NamedTuple", "Optional", "Sequence", "Tuple", "TypedDict", "Union", "cast",
    ),
    "dataclasses": (
        "dataclass", "field", "fields", "asdict", "astuple", "replace", "is_dataclass",
        "FrozenInstanceError",
    ),
    "enum": ("Enum", "IntEnum", "Flag", "IntFlag", "auto", "unique"),
})

# Editor primitives adaptations reference but cannot use outside the editor
EDITOR_STUBS: tuple[str, ...] = (
    "codemirror.autocomplete",
    "codemirror.language",
    "codemirror.lint",
    "codemirror.state",
    "codemirror.view",
    "lezer.common",
    "lezer.highlight",
    "lezer.lr",
)


class Capability:
    """Read-only namespace exposing a fixed set of names.

    Attributes cannot be assigned or deleted, so one adaptation cannot change
    what another adaptation (or the host) sees through the same capability.
    """

    __slots__ = ("_name", "_members")

    def __init__(self, name: str, members: Mapping[str, Any]):
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_members", MappingProxyType(dict(members)))

    @classmethod
    def from_module(cls, module_name: str, names: Iterable[str]) -> Capability:
        """Copy ``names`` out of an importable module; modules themselves are refused."""
        module = importlib.import_module(module_name)
        members = {name: getattr(module, name) for name in names}
        for name, value in members.items():
            if isinstance(value, ModuleType):
                raise ValueError(f"{module_name}.{name} is a module and cannot be exposed")
        return cls(module_name, members)

    def __getattr__(self, attr: str) -> Any:
        try:
            return self._members[attr]
        except KeyError:
            raise AttributeError(f"capability {self._name!r} has no attribute {attr!r}") from None

    def __setattr__(self, attr: str, value: Any) -> None:
        raise AttributeError(f"capability {self._name!r} is read-only")

    def __delattr__(self, attr: str) -> None:
        raise AttributeError(f"capability {self._name!r} is read-only")

    def __dir__(self) -> list[str]:
        return sorted(self._members)

    def __repr__(self) -> str:
        return f"<capability {self._name}>"


class UnavailableCapability:
    """Stand-in for a capability that exists in the editor but not here.

    Falsy, so adaptations can check for it. Attribute access yields nested
    stubs and calling one returns ``None``.
    """

    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __getattr__(self, attr: str) -> UnavailableCapability:
        if attr.startswith("__"):
            raise AttributeError(attr)
        return UnavailableCapability(f"{self._name}.{attr}")

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        return None

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"<unavailable capability {self._name}>"


class CapabilityRegistry(Mapping[str, Any]):
    """Immutable allowlist of ``name -> object`` for sandboxed imports.

    Lookups never raise: names outside the allowlist resolve to ``None``.
    """

    def __init__(self, capabilities: Mapping[str, Any] | None = None):
        self._capabilities = MappingProxyType(dict(capabilities or {}))

    def get(self, name: str, default: Any = None) -> Any:
        if not isinstance(name, str):
            return default
        return self._capabilities.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self._capabilities[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)

    def __repr__(self) -> str:
        return f"CapabilityRegistry({sorted(self._capabilities)})"

    def extend(self, capabilities: Mapping[str, Any]) -> CapabilityRegistry:
        """Return a new registry with explicit additions (existing names are replaced)."""
        return CapabilityRegistry({**self._capabilities, **capabilities})

    def with_stubs(self, names: Iterable[str]) -> CapabilityRegistry:
        """Return a new registry where ``names`` resolve to unavailable stubs."""
        return self.extend({name: UnavailableCapability(name) for name in names})

    def package_view(self, prefix: str) -> Any:
        """Nest every registered ``prefix.*`` name under attribute access.

        Used for ``import a.b`` which binds the top-level name ``a``. Returns
        ``None`` when nothing under ``prefix`` is registered.
        """
        entries = {
            name[len(prefix) + 1:]: obj
            for name, obj in self._capabilities.items()
            if name.startswith(prefix + ".")
        }
        if not entries:
            return self.get(prefix)

        tree: dict[str, Any] = {}
        for dotted, obj in sorted(entries.items()):
            node = tree
            *parents, leaf = dotted.split(".")
            for part in parents:
                if not isinstance(node.get(part), dict):
                    node[part] = {}
                node = node[part]
            node[leaf] = obj
        return _freeze(prefix, tree)


def _freeze(name: str, tree: dict[str, Any]) -> Capability:
    members = {
        key: _freeze(f"{name}.{key}", value) if isinstance(value, dict) else value
        for key, value in tree.items()
    }
    return Capability(name, members)


def default_registry() -> CapabilityRegistry:
    """Build the registry used when an action does not supply its own."""
    capabilities = {
        name: Capability.from_module(name, names) for name, names in SAFE_CAPABILITIES.items()
    }
    return CapabilityRegistry(capabilities).with_stubs(EDITOR_STUBS)
