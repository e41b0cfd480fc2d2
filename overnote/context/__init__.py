"""
Overnote: Context Engine.

Window signal resolution and the context tracking state machine.
"""

from overnote.context.resolver import ContextResolver, resolve
from overnote.context.signals import (
    ContextKind,
    ContextSource,
    ResolvedContext,
    Transition,
    TransitionReason,
    WindowSignal,
)
from overnote.context.tracker import ContextTracker, TrackerState

__all__ = [
    "ContextKind",
    "ContextResolver",
    "ContextSource",
    "ContextTracker",
    "ResolvedContext",
    "TrackerState",
    "Transition",
    "TransitionReason",
    "WindowSignal",
    "resolve",
]
