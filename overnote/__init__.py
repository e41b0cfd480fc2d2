"""
Overnote: context-aware sticky notes.

Watches the frontmost window, resolves it into a stable context label and
keeps one set of notes per context in an external notes backend.
"""

__version__ = "0.4.0"

from overnote.context import ContextResolver, ContextTracker

__all__ = ["ContextResolver", "ContextTracker", "__version__"]
