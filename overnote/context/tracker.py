"""
Overnote: Context Tracker.

State machine that owns the current context. Every probe result goes
through ``transition``, which applies the focus, failure, self-exclusion,
lock and ignore-list policies before adopting a new label and notifying
listeners.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from overnote.config import UNKNOWN_CONTEXT
from overnote.context.resolver import ContextResolver
from overnote.context.rules import DEFAULT_IGNORED_TITLES
from overnote.context.signals import (
    ContextKind,
    ResolvedContext,
    Transition,
    TransitionReason,
    WindowSignal,
)
from overnote.exceptions import ProbeError

logger = logging.getLogger("overnote.context")

Listener = Callable[[str], None]


@dataclass
class TrackerState:
    """Mutable tracker record. Only ``ContextTracker`` writes to it.

    Attributes:
        current_context: Last accepted label.
        previous_context: Label before the last change (one-deep history).
        last_valid_context: Last label that was not on the ignore list.
            Ignored labels are never adopted, so this mirrors
            ``current_context``; it is kept for status reporting.
        locked: Whether transitions are frozen.
        locked_context: Context captured when the lock was engaged.
        last_signal_failed: Sticky flag set by probe failures.
        last_signal: Most recent successful probe result.
        last_resolved: Resolution of ``last_signal``.
    """

    current_context: str = UNKNOWN_CONTEXT
    previous_context: str = UNKNOWN_CONTEXT
    last_valid_context: str = UNKNOWN_CONTEXT
    locked: bool = False
    locked_context: str | None = None
    last_signal_failed: bool = False
    last_signal: WindowSignal | None = None
    last_resolved: ResolvedContext | None = None


class ContextTracker:
    """Track the user's current context across noisy window signals.

    Usage:
        tracker = ContextTracker()
        tracker.subscribe(lambda ctx: print("now in", ctx))
        tracker.transition(WindowSignal(title="b.txt", owner_name="Notepad"))
        tracker.current_context  # "b | Notepad"
    """

    def __init__(
        self,
        resolver: ContextResolver | None = None,
        ignored_titles: tuple[str, ...] | list[str] = DEFAULT_IGNORED_TITLES,
    ):
        self.resolver = resolver or ContextResolver()
        self._ignored = {t.strip().casefold() for t in ignored_titles if t.strip()}
        self._state = TrackerState()
        self._listeners: list[Listener] = []

    # ─── Read Access ─────────────────────────────────────────────────

    @property
    def state(self) -> TrackerState:
        """Snapshot copy; mutating it has no effect on the tracker."""
        return replace(self._state)

    @property
    def current_context(self) -> str:
        return self._state.current_context

    @property
    def locked(self) -> bool:
        return self._state.locked

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a contextChanged listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ─── Transition ──────────────────────────────────────────────────

    def transition(
        self,
        result: WindowSignal | ProbeError | None,
        *,
        window_focused: bool = False,
        window_hidden: bool = False,
    ) -> Transition:
        """Apply one probe result. The only place the state changes."""
        st = self._state

        if window_focused or window_hidden or result is None:
            return self._stay(TransitionReason.SUPPRESSED)

        if isinstance(result, ProbeError):
            st.last_signal_failed = True
            logger.debug("Probe failed (%s), keeping %r", result, st.current_context)
            return self._stay(TransitionReason.PROBE_FAILED)

        st.last_signal_failed = False
        resolved = self.resolver.resolve(result)

        if resolved.kind is ContextKind.NOTES_WINDOW:
            return self._stay(TransitionReason.SELF_EXCLUDED, resolved)

        st.last_signal = result
        st.last_resolved = resolved

        if st.locked:
            logger.debug("Locked on %r, not adopting %r", st.locked_context, resolved.label)
            return self._stay(TransitionReason.LOCKED, resolved)

        if self.is_ignored(resolved, result):
            logger.debug("Ignored context %r, staying on %r", resolved.label, st.last_valid_context)
            return self._stay(TransitionReason.IGNORED, resolved)

        if resolved.label == st.current_context:
            st.last_valid_context = resolved.label
            return self._stay(TransitionReason.UNCHANGED, resolved)

        self._adopt(resolved.label)
        return Transition(st.current_context, True, TransitionReason.ADOPTED, resolved)

    def is_ignored(self, resolved: ResolvedContext, signal: WindowSignal | None = None) -> bool:
        """Whether the label (or the raw window title) is browser chrome noise.

        The raw title is only checked for applications and raw titles, so a
        document named like an ignored word (``History | Word``) still counts.
        """
        if resolved.label.casefold() in self._ignored:
            return True
        if resolved.kind not in (ContextKind.APPLICATION, ContextKind.RAW_TITLE):
            return False
        title = signal.title if signal else None
        return bool(title) and title.casefold() in self._ignored

    # ─── Lock / Revert ───────────────────────────────────────────────

    def lock(self) -> str:
        """Freeze the current context. Returns the locked context."""
        st = self._state
        if not st.locked:
            st.locked = True
            st.locked_context = st.current_context
            logger.info("Context locked on %r", st.locked_context)
        return st.locked_context

    def unlock(self, signal: WindowSignal | None = None) -> Transition:
        """Release the lock and reconcile with the latest available signal."""
        st = self._state
        if st.locked:
            logger.info("Context unlocked (was %r)", st.locked_context)
        st.locked = False
        st.locked_context = None
        latest = signal
        if latest is None or self.resolver.resolve(latest).kind is ContextKind.NOTES_WINDOW:
            # Unlocking from the notes window: use the last real window instead.
            latest = st.last_signal
        if latest is None:
            return self._stay(TransitionReason.UNCHANGED)
        return self.transition(latest)

    def revert(self) -> Transition:
        """Go back to the previous context."""
        st = self._state
        if st.locked:
            return self._stay(TransitionReason.LOCKED)
        if st.previous_context == st.current_context:
            return self._stay(TransitionReason.UNCHANGED)
        self._adopt(st.previous_context)
        return Transition(st.current_context, True, TransitionReason.ADOPTED)

    # ─── Internal Helpers ────────────────────────────────────────────

    def _stay(
        self, reason: TransitionReason, resolved: ResolvedContext | None = None
    ) -> Transition:
        return Transition(self._state.current_context, False, reason, resolved)

    def _adopt(self, label: str) -> None:
        st = self._state
        st.previous_context = st.current_context
        st.current_context = label
        st.last_valid_context = label
        logger.info("Context changed: %r -> %r", st.previous_context, label)
        self._emit(label)

    def _emit(self, label: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(label)
            except Exception:
                logger.exception("Context listener %r failed", listener)
