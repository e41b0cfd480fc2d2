"""
Overnote: Notes Backend Client.

Simple client for the REST service that stores notes keyed by context.

Usage:
    from overnote.client import NotesClient

    with NotesClient("http://127.0.0.1:8000/api") as client:
        client.save_notes("Report | Word", ["<p>check figures</p>"])
        notes = client.get_notes("Report | Word")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from overnote import config
from overnote.exceptions import BackendUnavailable, NotesBackendError

logger = logging.getLogger("overnote.client")


@dataclass
class Note:
    """A single stored note."""

    id: str
    content: str

    @classmethod
    def from_dict(cls, data: dict) -> Note:
        return cls(id=str(data.get("id", "")), content=data.get("content") or "")


@dataclass
class ContextNotes:
    """All notes stored under one context (gallery entry)."""

    context: str
    notes: list[Note] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> ContextNotes:
        notes = []
        for n in data.get("notes") or []:
            # Some backends return bare strings instead of {id, content}.
            notes.append(Note.from_dict(n) if isinstance(n, dict) else Note(id="", content=str(n)))
        return cls(context=data.get("context", ""), notes=notes)


def raise_for_status(resp: httpx.Response) -> None:
    """Map an error response onto the Overnote exception hierarchy."""
    if resp.status_code < 400:
        return
    try:
        body = resp.json()
        detail = body.get("detail", resp.text) if isinstance(body, dict) else resp.text
    except ValueError:
        detail = resp.text
    if resp.status_code >= 500:
        raise BackendUnavailable(resp.status_code, str(detail))
    raise NotesBackendError(resp.status_code, str(detail))


def parse_json(resp: httpx.Response):
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as e:
        raise NotesBackendError(resp.status_code, f"Invalid JSON response: {e}") from e


class NotesClient:
    """Synchronous client for the notes backend.

    Args:
        base_url: Backend URL including the API prefix (default from config)
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or config.BACKEND_BASE_URL).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.BACKEND_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs):
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BackendUnavailable(0, f"Connection error: {e}") from e
        raise_for_status(resp)
        return parse_json(resp)

    # ─── Notes ────────────────────────────────────────────────────────

    def get_notes(self, context: str) -> list[Note]:
        """Notes stored for a context. Unknown contexts yield []."""
        if not context or not context.strip():
            return []
        try:
            data = self._request("GET", "/notes", params={"context": context})
        except NotesBackendError as e:
            if e.status_code == 404:
                logger.debug("No notes found for context %r", context)
                return []
            raise
        return [Note.from_dict(n) for n in data or []]

    def save_notes(self, context: str, notes: list[str]) -> None:
        """Replace the full note set of a context."""
        self._request("PUT", "/notes/update", json={"context": context, "notes": notes})

    def create_notes(self, context: str, notes: list[str]) -> None:
        """Store the note set of a context that has none yet."""
        self._request("POST", "/notes/save", json={"context": context, "notes": notes})

    def delete_context(self, context: str) -> None:
        """Remove a context and all of its notes."""
        self._request("DELETE", "/context", json={"context": context})

    def all_notes(self) -> list[ContextNotes]:
        """Every stored context with its notes."""
        data = self._request("GET", "/all-notes")
        return [ContextNotes.from_dict(c) for c in data or []]

    # ─── Context Manager ──────────────────────────────────────────────

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
