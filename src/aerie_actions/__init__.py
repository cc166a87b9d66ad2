"""aerie-actions - SDK for Aerie actions."""

__version__ = "0.1.0"

from aerie_actions.api import ActionsAPI, SequenceNotFoundError  # noqa: E402

__all__ = ["ActionsAPI", "SequenceNotFoundError", "__version__"]
