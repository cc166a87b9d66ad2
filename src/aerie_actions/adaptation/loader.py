"""Load the sequence adaptation bound to a workspace.

Pipeline, one pass per call and nothing cached:

    workspace -> parcel -> adaptation source -> sandbox -> shape check
"""

from __future__ import annotations

import logging
import math
from typing import Any

from aerie_actions.adaptation.errors import (
    AdaptationConfigurationError,
    AdaptationNotFoundError,
    ParcelNotFoundError,
)
from aerie_actions.adaptation.executor import SandboxExecutor
from aerie_actions.adaptation.registry import CapabilityRegistry, default_registry
from aerie_actions.adaptation.validator import LoadedAdaptation, validate
from aerie_actions.db.queries import query_read_adaptation, query_read_parcel_for_workspace
from aerie_actions.models.records import AdaptationRecord, Parcel

logger = logging.getLogger(__name__)


def usable_adaptation_id(value: Any) -> int | None:
    """Return ``value`` as a positive int, or ``None`` if it cannot name an adaptation."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and value > 0:
        return int(value)
    return None


class AdaptationLoader:
    """Resolves, fetches, evaluates and validates workspace adaptations.

    Args:
        db: asyncpg-compatible connection used for both reads
        registry: capabilities the adaptation may import
        executor: sandbox used for evaluation (default: ``SandboxExecutor()``)
    """

    def __init__(
        self,
        db: Any,
        registry: CapabilityRegistry | None = None,
        executor: SandboxExecutor | None = None,
    ):
        self.db = db
        self.registry = registry if registry is not None else default_registry()
        self.executor = executor or SandboxExecutor()

    async def resolve_parcel(self, workspace_id: int) -> Parcel:
        """Return the parcel bound to ``workspace_id``.

        Raises:
            ParcelNotFoundError: no parcel is bound to the workspace.
            AdaptationConfigurationError: the parcel names no usable adaptation.
        """
        row = await query_read_parcel_for_workspace(self.db, workspace_id)
        if row is None:
            logger.warning(f"No parcel bound to workspace {workspace_id}")
            raise ParcelNotFoundError(
                f"No parcel found for workspace {workspace_id}",
                workspace_id=workspace_id,
            )

        parcel = Parcel.from_row(row)
        if usable_adaptation_id(parcel.sequence_adaptation_id) is None:
            logger.warning(
                f"Parcel {parcel.id} for workspace {workspace_id} has invalid "
                f"sequence_adaptation_id {parcel.sequence_adaptation_id!r}"
            )
            raise AdaptationConfigurationError(
                f"Parcel {parcel.id} for workspace {workspace_id} has no valid "
                f"sequence adaptation (sequence_adaptation_id={parcel.sequence_adaptation_id!r})",
                workspace_id=workspace_id,
                parcel_id=parcel.id,
                adaptation_id=parcel.sequence_adaptation_id,
            )
        return parcel

    async def fetch_adaptation_source(
        self,
        adaptation_id: int,
        *,
        parcel_id: int | None = None,
        workspace_id: int | None = None,
    ) -> str:
        """Return the stored source of an adaptation.

        Raises:
            AdaptationNotFoundError: the record is missing or its text is empty.
        """
        row = await query_read_adaptation(self.db, adaptation_id)
        record = AdaptationRecord.from_row(row) if row is not None else None
        if record is None or not record.adaptation:
            logger.warning(f"Sequence adaptation {adaptation_id} is missing or empty")
            raise AdaptationNotFoundError(
                f"Sequence adaptation {adaptation_id} for parcel {parcel_id} not found",
                workspace_id=workspace_id,
                parcel_id=parcel_id,
                adaptation_id=adaptation_id,
            )
        return record.adaptation

    async def load_adaptation(self, workspace_id: int) -> LoadedAdaptation:
        """Load and validate the adaptation configured for ``workspace_id``."""
        parcel = await self.resolve_parcel(workspace_id)
        adaptation_id = usable_adaptation_id(parcel.sequence_adaptation_id)
        ids = {"parcel_id": parcel.id, "workspace_id": workspace_id}

        source = await self.fetch_adaptation_source(adaptation_id, **ids)
        result = await self.executor.execute(
            source, self.registry, adaptation_id=adaptation_id, **ids
        )
        adaptation = validate(result.value, adaptation_id, parcel.id, workspace_id=workspace_id)

        logger.info(
            f"Loaded sequence adaptation {adaptation_id} for workspace {workspace_id} "
            f"(parcel {parcel.id}, {result.execution_time_ms}ms)"
        )
        return adaptation


async def load_adaptation(
    db: Any,
    workspace_id: int,
    registry: CapabilityRegistry | None = None,
) -> LoadedAdaptation:
    """Load the adaptation for ``workspace_id`` with a one-off loader."""
    return await AdaptationLoader(db, registry=registry).load_adaptation(workspace_id)
