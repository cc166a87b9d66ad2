"""HTTP client for Aerie services.

Covers the Hasura-style JSON endpoints (``get``/``post``) and the workspace
file service, which serves files under ``/ws/{workspace_id}/{path}``.
Failed requests raise ``httpx.HTTPStatusError``; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from aerie_actions.utils.config import get_settings

logger = logging.getLogger(__name__)


class AerieClient:
    """Async client for Aerie REST endpoints and workspace files.

    Usable as an async context manager; otherwise call ``aclose`` when done.
    """

    def __init__(
        self,
        base_url: str | None = None,
        auth_token: str | None = None,
        workspace_url: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Aerie gateway/Hasura URL (default from settings)
            auth_token: Bearer token sent with every request
            workspace_url: Workspace file service URL (default from settings)
            timeout: Request timeout in seconds
        """
        settings = get_settings()

        self.base_url = (base_url or settings.aerie_url).rstrip("/")
        self.workspace_url = (workspace_url or settings.workspace_url).rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds

        self._client: httpx.AsyncClient | None = None

    def _create_client(self) -> httpx.AsyncClient:
        """Create HTTP client with authentication."""
        headers: dict[str, str] = {}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        return httpx.AsyncClient(headers=headers, timeout=self.timeout)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AerieClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _workspace_path(self, workspace_id: int, path: str = "") -> str:
        return f"{self.workspace_url}/ws/{workspace_id}/{path.lstrip('/')}"

    # ==================== JSON Endpoints ====================

    async def get(self, endpoint: str) -> Any:
        """GET ``endpoint`` on the Aerie gateway and return the decoded JSON."""
        client = self._ensure_client()
        response = await client.get(f"{self.base_url}/{endpoint.lstrip('/')}")
        response.raise_for_status()
        return response.json()

    async def post(self, endpoint: str, payload: Any = None) -> Any:
        """POST ``payload`` as JSON to ``endpoint`` and return the decoded JSON."""
        client = self._ensure_client()
        response = await client.post(
            f"{self.base_url}/{endpoint.lstrip('/')}",
            json=payload,
        )
        response.raise_for_status()
        return response.json()

    # ==================== Workspace Files ====================

    async def list_files(self, workspace_id: int, path: str = "") -> list[dict[str, Any]]:
        """List the entries of a workspace directory."""
        client = self._ensure_client()
        response = await client.get(self._workspace_path(workspace_id, path))
        response.raise_for_status()
        return response.json()

    async def read_file(self, workspace_id: int, path: str) -> str:
        """Read a workspace file as text."""
        client = self._ensure_client()
        response = await client.get(self._workspace_path(workspace_id, path))
        response.raise_for_status()
        return response.text

    async def write_file(self, workspace_id: int, path: str, content: str | bytes) -> None:
        """Create or overwrite a workspace file."""
        client = self._ensure_client()
        data = content.encode("utf-8") if isinstance(content, str) else content
        filename = path.rsplit("/", 1)[-1]
        response = await client.put(
            self._workspace_path(workspace_id, path),
            files={"file": (filename, data)},
        )
        response.raise_for_status()
        logger.info(f"Wrote {len(data)} bytes to workspace {workspace_id}: {path}")

    async def delete_file(self, workspace_id: int, path: str) -> None:
        """Delete a workspace file."""
        client = self._ensure_client()
        response = await client.delete(self._workspace_path(workspace_id, path))
        response.raise_for_status()
        logger.info(f"Deleted workspace {workspace_id} file: {path}")
