"""
Overnote: Context Signals.

Data models for the context engine: the raw window snapshot produced by a
probe, the resolved context derived from it and the outcome of a tracker
transition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class WindowSignal:
    """Snapshot of the frontmost window.

    Attributes:
        title: Window title, if the OS exposed one.
        url: Active tab URL for browsers.
        owner_name: Name of the process owning the window.
    """

    title: str | None = None
    url: str | None = None
    owner_name: str | None = None

    def __post_init__(self) -> None:
        # Blank strings are treated as absent.
        object.__setattr__(self, "title", _clean(self.title))
        object.__setattr__(self, "url", _clean(self.url))
        object.__setattr__(self, "owner_name", _clean(self.owner_name))

    @classmethod
    def from_dict(cls, data: dict) -> WindowSignal:
        """Build from an ``{title, url, owner}`` payload.

        ``owner`` may be a plain name or an ``{"name": ...}`` object.
        """
        owner = data.get("owner", data.get("owner_name"))
        if isinstance(owner, dict):
            owner = owner.get("name")
        return cls(title=data.get("title"), url=data.get("url"), owner_name=owner)

    def to_dict(self) -> dict:
        return {"title": self.title, "url": self.url, "owner_name": self.owner_name}


class ContextKind(str, Enum):
    """Classification tag of a resolved context."""

    SEARCH_QUERY = "search_query"
    DOCUMENT = "document"
    APPLICATION = "application"
    RAW_TITLE = "raw_title"
    NOTES_WINDOW = "notes_window"


@dataclass(frozen=True)
class ContextSource:
    """Evidence the resolver used to build a label."""

    site_name: str | None = None
    app_name: str | None = None
    query: str | None = None


@dataclass(frozen=True)
class ResolvedContext:
    """A context label plus the classification that produced it."""

    label: str
    kind: ContextKind
    source: ContextSource = field(default_factory=ContextSource)

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "kind": self.kind.value,
            "source": {
                "site_name": self.source.site_name,
                "app_name": self.source.app_name,
                "query": self.source.query,
            },
        }


class TransitionReason(str, Enum):
    """Why a tracker transition did or did not move the current context."""

    ADOPTED = "adopted"
    UNCHANGED = "unchanged"
    SUPPRESSED = "suppressed"  # notes window focused or hidden
    PROBE_FAILED = "probe_failed"
    SELF_EXCLUDED = "self_excluded"
    LOCKED = "locked"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Transition:
    """Outcome of one tracker transition."""

    context: str
    changed: bool
    reason: TransitionReason
    resolved: ResolvedContext | None = None
