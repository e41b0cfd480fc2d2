"""
Overnote: Note Session.

Keeps the editor buffer in step with the tracked context: loads the notes
of each new context, saves edits back and serves the gallery view.

Empty-note policy: saving a note that is blank once markup is stripped
deletes the context from the backend instead of storing an empty note.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Iterable

from overnote.async_client import AsyncNotesClient
from overnote.client import ContextNotes, Note
from overnote.exceptions import NotesBackendError

logger = logging.getLogger("overnote.notes")

_TAG = re.compile(r"<[^>]*>")


def is_blank(content: str | None) -> bool:
    """True for empty editor content such as ``<p><br></p>``."""
    if not content:
        return True
    return not html.unescape(_TAG.sub("", content)).strip()


def filter_contexts(contexts: Iterable[ContextNotes], query: str = "") -> list[ContextNotes]:
    """Gallery search: case-insensitive substring match on the context label."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(contexts)
    return [c for c in contexts if needle in c.context.lower()]


class NoteSession:
    """Editor-side state for the notes window.

    Usage:
        session = NoteSession(AsyncNotesClient())
        daemon.add_handler(session.load)
        await session.save("<p>remember this</p>")
    """

    def __init__(self, client: AsyncNotesClient):
        self.client = client
        self.context: str | None = None
        self.content = ""
        self.notes: list[Note] = []
        self.dirty = False

    async def load(self, context: str) -> list[Note]:
        """Switch to a context and load its notes into the buffer."""
        if self.dirty and self.context and self.context != context:
            logger.warning("Leaving %r with unsaved changes", self.context)
        self.context = context
        self.dirty = False
        try:
            self.notes = await self.client.get_notes(context)
        except NotesBackendError as e:
            logger.warning("Could not fetch notes for %r: %s", context, e)
            self.notes = []
        self.content = "".join(n.content for n in self.notes)
        logger.debug("Loaded %d note(s) for %r", len(self.notes), context)
        return self.notes

    async def refresh(self, context: str | None = None) -> list[Note]:
        """Re-fetch notes for the given (or current) context."""
        target = context or self.context
        if not target:
            return []
        return await self.load(target)

    async def save(self, content: str) -> bool:
        """Store the buffer. Returns False when the save was abandoned."""
        self.content = content
        self.dirty = True
        if not self.context:
            logger.warning("No context to save notes under")
            return False

        try:
            if is_blank(content):
                await self._delete(self.context)
                self.notes = []
            else:
                await self.client.save_notes(self.context, [content])
        except NotesBackendError as e:
            logger.warning("Saving notes for %r failed: %s", self.context, e)
            return False

        self.dirty = False
        return True

    async def gallery(self, query: str = "") -> list[ContextNotes]:
        """All saved contexts, optionally filtered by a search string."""
        try:
            contexts = await self.client.all_notes()
        except NotesBackendError as e:
            logger.warning("Could not fetch all notes: %s", e)
            return []
        return filter_contexts(contexts, query)

    async def forget(self, context: str) -> bool:
        """Delete a context from the gallery."""
        try:
            await self._delete(context)
        except NotesBackendError as e:
            logger.warning("Could not delete %r: %s", context, e)
            return False
        if context == self.context:
            self.notes = []
            self.content = ""
        return True

    async def _delete(self, context: str) -> None:
        try:
            await self.client.delete_context(context)
        except NotesBackendError as e:
            if e.status_code != 404:
                raise
            logger.debug("Context %r was not stored", context)
