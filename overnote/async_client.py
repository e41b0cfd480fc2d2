"""
Overnote: Async Notes Backend Client.

Fully asynchronous client for the notes backend using httpx.AsyncClient.
Used from the daemon's event loop so note fetches never block polling.

Usage:
    from overnote.async_client import AsyncNotesClient

    async with AsyncNotesClient() as client:
        notes = await client.get_notes("Cats | Google")
"""

from __future__ import annotations

import logging

import httpx

from overnote import config
from overnote.client import ContextNotes, Note, parse_json, raise_for_status
from overnote.exceptions import BackendUnavailable, NotesBackendError

__all__ = ["AsyncNotesClient"]

logger = logging.getLogger("overnote.client")


class AsyncNotesClient:
    """Async client for the notes backend.

    Args:
        base_url: Backend URL including the API prefix (default from config)
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or config.BACKEND_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.BACKEND_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs):
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BackendUnavailable(0, f"Connection error: {e}") from e
        raise_for_status(resp)
        return parse_json(resp)

    # ─── Notes ────────────────────────────────────────────────────────

    async def get_notes(self, context: str) -> list[Note]:
        """Notes stored for a context. Unknown contexts yield []."""
        if not context or not context.strip():
            return []
        try:
            data = await self._request("GET", "/notes", params={"context": context})
        except NotesBackendError as e:
            if e.status_code == 404:
                logger.debug("No notes found for context %r", context)
                return []
            raise
        return [Note.from_dict(n) for n in data or []]

    async def save_notes(self, context: str, notes: list[str]) -> None:
        """Replace the full note set of a context."""
        await self._request("PUT", "/notes/update", json={"context": context, "notes": notes})

    async def create_notes(self, context: str, notes: list[str]) -> None:
        """Store the note set of a context that has none yet."""
        await self._request("POST", "/notes/save", json={"context": context, "notes": notes})

    async def delete_context(self, context: str) -> None:
        """Remove a context and all of its notes."""
        await self._request("DELETE", "/context", json={"context": context})

    async def all_notes(self) -> list[ContextNotes]:
        """Every stored context with its notes."""
        data = await self._request("GET", "/all-notes")
        return [ContextNotes.from_dict(c) for c in data or []]

    # ─── Context Manager ──────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncNotesClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
