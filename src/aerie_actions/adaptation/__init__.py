"""Dynamic loading of per-workspace sequence adaptations."""

from aerie_actions.adaptation.errors import (
    AdaptationConfigurationError,
    AdaptationError,
    AdaptationErrorKind,
    AdaptationExecutionError,
    AdaptationNotFoundError,
    AdaptationShapeError,
    AdaptationTimeoutError,
    ParcelNotFoundError,
)
from aerie_actions.adaptation.executor import ExecutionContext, ExecutionResult, SandboxExecutor
from aerie_actions.adaptation.loader import AdaptationLoader, load_adaptation
from aerie_actions.adaptation.registry import (
    Capability,
    CapabilityRegistry,
    UnavailableCapability,
    default_registry,
)
from aerie_actions.adaptation.validator import LoadedAdaptation, adaptation_function, validate

__all__ = [
    "AdaptationConfigurationError",
    "AdaptationError",
    "AdaptationErrorKind",
    "AdaptationExecutionError",
    "AdaptationLoader",
    "AdaptationNotFoundError",
    "AdaptationShapeError",
    "AdaptationTimeoutError",
    "Capability",
    "CapabilityRegistry",
    "ExecutionContext",
    "ExecutionResult",
    "LoadedAdaptation",
    "ParcelNotFoundError",
    "SandboxExecutor",
    "UnavailableCapability",
    "adaptation_function",
    "default_registry",
    "load_adaptation",
    "validate",
]
