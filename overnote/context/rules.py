"""
Overnote: Classification Rules.

Data-driven tables consumed by the resolver: search providers, document
applications, application aliases and the notes app's own identity.
Everything here can be overridden from ``~/.overnote/config.json``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

# ─── Search Providers ────────────────────────────────────────────────

_QUOTES = "\"'“”‘’«»"


@dataclass(frozen=True)
class SearchProvider:
    """A search-results page recognisable from its URL and window title."""

    name: str
    url_pattern: re.Pattern
    title_pattern: re.Pattern
    title_hint: str | None = None

    def matches(self, url: str | None) -> bool:
        return bool(url) and self.url_pattern.search(url) is not None

    def extract(self, title: str | None) -> str | None:
        """Pull the query term out of the title, None if it is not there."""
        if not title:
            return None
        if self.title_hint and self.title_hint not in title:
            return None
        match = self.title_pattern.search(title)
        if not match:
            return None
        query = match.group(1).strip().strip(_QUOTES).strip()
        return query or None


def _provider(name: str, url: str, title: str, hint: str | None = None) -> SearchProvider:
    return SearchProvider(
        name=name,
        url_pattern=re.compile(url, re.IGNORECASE),
        title_pattern=re.compile(title),
        title_hint=hint,
    )


# Evaluated in order; the first provider that yields a query wins.
SEARCH_PROVIDERS: tuple[SearchProvider, ...] = (
    _provider("google", r"google\.[a-z.]+/(?:search|webhp)", r"^(.*?) - Google Search$"),
    _provider(
        "wikipedia", r"wikipedia\.org", r"Search results for (.*?) - Wikipedia",
        hint="Search results",
    ),
    _provider("youtube", r"youtube\.com/results", r"\"(.*?)\" - YouTube"),
    _provider("duckduckgo", r"duckduckgo\.com/", r"^(.*?) at DuckDuckGo"),
    _provider("bing", r"bing\.com/search", r"^(.*?) - Bing"),
    _provider("yahoo", r"search\.yahoo\.com", r"^(.*?) - Yahoo Search"),
    _provider("amazon", r"amazon\.[a-z.]+/s[/?]", r"^Amazon\.[a-z.]+\s*:\s*(.+)$"),
    _provider("ebay", r"ebay\.[a-z.]+/sch/", r"^(.*?)\s*\|\s*eBay"),
    _provider("linkedin", r"linkedin\.com/search/results", r"^(.*?) \| LinkedIn"),
)


def generic_search_query(title: str | None) -> str | None:
    """Fallback for unknown search pages: text before the first " - "."""
    if not title or "search" not in title.lower() or " - " not in title:
        return None
    query = title.split(" - ", 1)[0].strip().strip(_QUOTES).strip()
    return query or None


# Second-level labels that sit under a country code (amazon.co.uk).
_SECOND_LEVEL = {"co", "com", "org", "net", "ac", "gov", "edu", "ne", "or"}


def site_name(url: str | None) -> str:
    """Registrable name of the URL host: mail.google.com -> google."""
    if not url:
        return "Unknown"
    try:
        host = urlsplit(url if "://" in url else f"//{url}").hostname or ""
    except ValueError:
        return "Unknown"
    labels = [p for p in host.split(".") if p]
    if labels and labels[0] == "www":
        labels = labels[1:]
    if not labels:
        return "Unknown"
    if len(labels) == 1:
        return labels[0]
    if len(labels) >= 3 and len(labels[-1]) == 2 and labels[-2] in _SECOND_LEVEL:
        return labels[-3]
    return labels[-2]


# ─── Document Applications ───────────────────────────────────────────

_EXTENSION = re.compile(r"\.[A-Za-z0-9]{1,5}$")
_TITLE_SEPARATOR = re.compile(r"\s+[-—]\s+")


@dataclass(frozen=True)
class DocumentApp:
    """A document-centric application and the short label shown for it.

    Attributes:
        match: Process name (or substring of it) identifying the app.
        label: Short format label used in the context string.
        exact: Require an exact process-name match instead of a substring.
        keep_extension: Keep the file extension (code editors).
        split_title: Only keep the title segment before the first " - ".
    """

    match: str
    label: str
    exact: bool = False
    keep_extension: bool = False
    split_title: bool = False

    def matches(self, owner_name: str) -> bool:
        if self.exact:
            return owner_name == self.match
        return self.match in owner_name

    def document_name(self, title: str) -> str:
        name = title.strip()
        if self.split_title:
            name = _TITLE_SEPARATOR.split(name, 1)[0].strip()
        if self.keep_extension:
            if "." not in name or "workspace" in name.lower():
                return "Untitled"
            return name
        return _EXTENSION.sub("", name).strip() or title.strip()

    @classmethod
    def from_dict(cls, data: dict) -> DocumentApp:
        return cls(
            match=str(data["match"]),
            label=str(data.get("label") or data["match"]),
            exact=bool(data.get("exact", False)),
            keep_extension=bool(data.get("keep_extension", False)),
            split_title=bool(data.get("split_title", False)),
        )


DEFAULT_DOCUMENT_APPS: tuple[DocumentApp, ...] = (
    DocumentApp("Microsoft Word", "Word"),
    DocumentApp("Preview", "Preview"),
    DocumentApp("Adobe Acrobat", "Acrobat"),
    DocumentApp("Google Docs", "Google Docs"),
    DocumentApp("Notepad", "Notepad"),
    DocumentApp("Sublime Text", "Sublime"),
    DocumentApp("Visual Studio Code", "VS Code"),
    DocumentApp("Code", "VSCode", exact=True, keep_extension=True, split_title=True),
    DocumentApp("Pages", "Pages"),
    DocumentApp("TextEdit", "TextEdit"),
)

# Only consulted when no document app claims the owner, e.g. a table built
# without the "Code" entry above.
DEFAULT_ALIASES: dict[str, str] = {"Code": "VSCode"}

# Lower-cased substring -> canonical name. Title text of these apps is
# never used for the label.
DEFAULT_PINNED_APPS: dict[str, str] = {"chatgpt": "ChatGPT"}

DEFAULT_SELF_NAMES: tuple[str, ...] = ("Electron", "Overnote")

DEFAULT_IGNORED_TITLES: tuple[str, ...] = ("History", "Downloads", "Settings", "New Tab")


@dataclass(frozen=True)
class AppTable:
    """Injectable application tables used by the resolver."""

    self_names: tuple[str, ...] = DEFAULT_SELF_NAMES
    document_apps: tuple[DocumentApp, ...] = DEFAULT_DOCUMENT_APPS
    aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    pinned_apps: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PINNED_APPS))

    def is_self(self, owner_name: str | None) -> bool:
        if not owner_name:
            return False
        owner = owner_name.casefold()
        return any(owner == name.casefold() for name in self.self_names)

    def document_app(self, owner_name: str) -> DocumentApp | None:
        for app in self.document_apps:
            if app.matches(owner_name):
                return app
        return None

    def pinned_name(self, owner_name: str) -> str | None:
        owner = owner_name.lower()
        for needle, canonical in self.pinned_apps.items():
            if needle.lower() in owner:
                return canonical
        return None

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> AppTable:
        """Defaults extended with the overrides of a config mapping.

        User document apps are checked before the built-in ones; aliases
        and pinned apps are merged over the defaults.
        """
        docs: list[DocumentApp] = []
        raw_docs = data.get("document_apps") or []
        if isinstance(raw_docs, dict):
            docs = [DocumentApp(match=k, label=v) for k, v in raw_docs.items()]
        else:
            docs = [DocumentApp.from_dict(d) for d in raw_docs if isinstance(d, dict) and "match" in d]

        aliases = dict(DEFAULT_ALIASES)
        aliases.update(data.get("app_aliases") or {})
        pinned = dict(DEFAULT_PINNED_APPS)
        pinned.update(data.get("pinned_apps") or {})
        self_names = tuple(dict.fromkeys([*DEFAULT_SELF_NAMES, *(data.get("self_names") or [])]))

        return cls(
            self_names=self_names,
            document_apps=tuple(docs) + DEFAULT_DOCUMENT_APPS,
            aliases=aliases,
            pinned_apps=pinned,
        )


DEFAULT_TABLE = AppTable()
