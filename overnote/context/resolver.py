"""
Overnote: Context Resolver.

Pure classification of a window snapshot into a context label.

Rules are evaluated in a fixed order and the first match wins:
    1. Self-exclusion (the notes window itself)
    2. Search-results pages
    3. Document-centric applications
    4. Generic applications
    5. Raw title / URL / "Unknown Context"
"""

from __future__ import annotations

import logging

from overnote.config import NOTES_WINDOW_CONTEXT, UNKNOWN_CONTEXT
from overnote.context.rules import (
    DEFAULT_TABLE,
    SEARCH_PROVIDERS,
    AppTable,
    SearchProvider,
    generic_search_query,
    site_name,
)
from overnote.context.signals import ContextKind, ContextSource, ResolvedContext, WindowSignal

logger = logging.getLogger("overnote.context")


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


class ContextResolver:
    """Resolve window signals into context labels.

    The resolver holds only immutable tables, so ``resolve`` is
    deterministic and side-effect free.

    Usage:
        resolver = ContextResolver()
        ctx = resolver.resolve(WindowSignal(title="Report.docx", owner_name="Microsoft Word"))
        ctx.label  # "Report | Word"
    """

    def __init__(
        self,
        table: AppTable = DEFAULT_TABLE,
        providers: tuple[SearchProvider, ...] = SEARCH_PROVIDERS,
    ):
        self.table = table
        self.providers = providers

    def resolve(self, signal: WindowSignal) -> ResolvedContext:
        """Classify a signal. Never raises, never returns an empty label."""
        title, url, owner = signal.title, signal.url, signal.owner_name

        if self.table.is_self(owner):
            return ResolvedContext(
                label=NOTES_WINDOW_CONTEXT,
                kind=ContextKind.NOTES_WINDOW,
                source=ContextSource(app_name=owner),
            )

        query = self.search_query(title, url)
        if query:
            site = _capitalize(site_name(url))
            display = _capitalize(query) if len(query) > 1 else query
            return ResolvedContext(
                label=f"{display} | {site}",
                kind=ContextKind.SEARCH_QUERY,
                source=ContextSource(site_name=site, app_name=owner, query=query),
            )

        if title and owner:
            app = self.table.document_app(owner)
            if app is not None:
                document = app.document_name(title)
                return ResolvedContext(
                    label=f"{document} | {app.label}",
                    kind=ContextKind.DOCUMENT,
                    source=ContextSource(app_name=app.label),
                )

            name = self.table.pinned_name(owner) or self.table.aliases.get(owner) or owner
            return ResolvedContext(
                label=name,
                kind=ContextKind.APPLICATION,
                source=ContextSource(app_name=name),
            )

        logger.debug("No rule matched %s, using raw title", signal)
        return ResolvedContext(
            label=title or url or UNKNOWN_CONTEXT,
            kind=ContextKind.RAW_TITLE,
            source=ContextSource(app_name=owner),
        )

    def search_query(self, title: str | None, url: str | None) -> str | None:
        """Query term of a search-results page, or None."""
        for provider in self.providers:
            if provider.matches(url):
                query = provider.extract(title)
                if query:
                    return query
        return generic_search_query(title)


_default = ContextResolver()


def resolve(signal: WindowSignal) -> ResolvedContext:
    """Resolve with the built-in tables."""
    return _default.resolve(signal)
