"""REST helpers and the workspace file client."""

from aerie_actions.files.client import AerieClient

__all__ = ["AerieClient"]
