"""Errors raised while loading a sequence adaptation."""

from __future__ import annotations

from enum import Enum
from typing import Any


class AdaptationErrorKind(str, Enum):
    """Why an adaptation could not be loaded."""

    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    EXECUTION_FAILURE = "execution_failure"
    SHAPE_MISMATCH = "shape_mismatch"
    TIMEOUT = "timeout"


class AdaptationError(Exception):
    """Base for every adaptation load failure.

    The ids are filled in where the failure is first detected; any of them
    may be ``None`` when the pipeline had not reached that step.
    """

    kind: AdaptationErrorKind

    def __init__(
        self,
        message: str,
        *,
        workspace_id: int | None = None,
        parcel_id: int | None = None,
        adaptation_id: Any = None,
    ):
        self.workspace_id = workspace_id
        self.parcel_id = parcel_id
        self.adaptation_id = adaptation_id
        super().__init__(message)


class AdaptationConfigurationError(AdaptationError):
    """The parcel exists but names no usable adaptation."""

    kind = AdaptationErrorKind.CONFIGURATION


class AdaptationNotFoundError(AdaptationError):
    """A parcel or adaptation record is missing, or the adaptation is empty."""

    kind = AdaptationErrorKind.NOT_FOUND


class ParcelNotFoundError(AdaptationNotFoundError):
    """No parcel is bound to the workspace."""


class AdaptationExecutionError(AdaptationError):
    """Evaluating the adaptation source raised.

    The original exception is kept as ``cause`` and chained as ``__cause__``.
    """

    kind = AdaptationErrorKind.EXECUTION_FAILURE

    def __init__(self, message: str, *, cause: BaseException, **ids: Any):
        self.cause = cause
        super().__init__(message, **ids)


class AdaptationTimeoutError(AdaptationError):
    """Evaluating the adaptation source exceeded its wall-clock budget."""

    kind = AdaptationErrorKind.TIMEOUT

    def __init__(self, message: str, *, timeout_seconds: float, **ids: Any):
        self.timeout_seconds = timeout_seconds
        super().__init__(message, **ids)


class AdaptationShapeError(AdaptationError):
    """The adaptation evaluated to something other than a structured object."""

    kind = AdaptationErrorKind.SHAPE_MISMATCH

    def __init__(self, message: str, *, value: Any = None, **ids: Any):
        self.value = value
        super().__init__(message, **ids)
