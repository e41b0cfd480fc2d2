"""ContextDaemon: polls the window source and drives the context tracker."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from overnote import config
from overnote.context.probe import WindowSignalSource, default_source
from overnote.context.signals import Transition, WindowSignal
from overnote.context.tracker import ContextTracker
from overnote.daemon.models import PERMISSION_HINT, DaemonStatus
from overnote.daemon.notifier import Notifier
from overnote.exceptions import PermissionDenied, ProbeError, ProbeFailed

logger = logging.getLogger("overnote.daemon")

Handler = Callable[[str], Any]

_MAX_ERRORS = 20


class ContextDaemon:
    """Single-loop scheduler for context tracking.

    Timer ticks and notes-window events share one entry point, ``tick``,
    which is serialised by a lock: a probe always finishes (or times out)
    before the next one starts, so change handlers fire in real-time order.

    Usage:
        daemon = ContextDaemon(notify=False)
        daemon.add_handler(session.load)
        await daemon.tick()      # Run once
        await daemon.run()       # Poll until stop()
    """

    def __init__(
        self,
        source: WindowSignalSource | None = None,
        tracker: ContextTracker | None = None,
        interval_ms: int | None = None,
        probe_timeout: float | None = None,
        permission_retry: float | None = None,
        notify: bool = True,
        status_file: Path | None = None,
        window_visible: bool = True,
    ):
        self.probe_timeout = probe_timeout if probe_timeout is not None else config.PROBE_TIMEOUT
        self.source = source or default_source(timeout=self.probe_timeout)
        self.tracker = tracker or ContextTracker()
        self.interval = (interval_ms or config.POLL_INTERVAL_MS) / 1000
        self.permission_retry = (
            permission_retry if permission_retry is not None else config.PERMISSION_RETRY
        )
        self.notify_enabled = notify
        self.status_file = status_file

        self.window_focused = False
        self.window_visible = window_visible
        self.permission_denied = False

        self._lock = asyncio.Lock()
        self._handlers: list[Handler] = []
        self._shutdown = False
        self._wakeup: asyncio.Event | None = None
        self._permission_reported = False
        self._ticks = 0
        self._changes = 0
        self._last_probe_ms = 0.0
        self._errors: list[str] = []

    # ─── Handlers ────────────────────────────────────────────────────

    def add_handler(self, handler: Handler) -> None:
        """Register a sync or async callable invoked with each new context."""
        self._handlers.append(handler)

    @property
    def current_context(self) -> str:
        return self.tracker.current_context

    # ─── Transition Entry Point ──────────────────────────────────────

    async def tick(self, trigger: str = "poll") -> Transition:
        """Probe (unless suppressed) and run one tracker transition."""
        async with self._lock:
            self._ticks += 1
            if self.window_focused or not self.window_visible:
                return self.tracker.transition(
                    None,
                    window_focused=self.window_focused,
                    window_hidden=not self.window_visible,
                )
            result = await self._probe()
            transition = self.tracker.transition(result)
            logger.debug("Tick (%s): %s -> %r", trigger, transition.reason.value, transition.context)
            await self._after(transition)
            return transition

    async def refresh(self) -> Transition:
        """Probe right now, even while the notes window has focus."""
        async with self._lock:
            self._ticks += 1
            transition = self.tracker.transition(await self._probe())
            await self._after(transition)
            return transition

    async def lock(self) -> str:
        async with self._lock:
            context = self.tracker.lock()
            self._save_status()
            return context

    async def unlock(self) -> Transition:
        """Unlock and reconcile immediately instead of waiting for a tick."""
        async with self._lock:
            result = await self._probe()
            signal = result if isinstance(result, WindowSignal) else None
            transition = self.tracker.unlock(signal)
            await self._after(transition, force_save=True)
            return transition

    # ─── Notes Window Events ─────────────────────────────────────────

    def on_focus(self) -> None:
        self.window_focused = True

    async def on_blur(self) -> Transition:
        self.window_focused = False
        return await self.tick("blur")

    async def on_show(self) -> Transition:
        self.window_visible = True
        return await self.tick("show")

    def on_hide(self) -> None:
        self.window_visible = False

    # ─── Loop ────────────────────────────────────────────────────────

    async def run(self) -> None:
        """Poll until stopped. Slows down once access has been denied."""
        self._shutdown = False
        self._wakeup = asyncio.Event()
        logger.info("Overnote daemon starting (interval=%dms)", self.interval * 1000)
        try:
            while not self._shutdown:
                if self.window_visible and not self.window_focused:
                    await self.tick("poll")
                delay = self.permission_retry if self.permission_denied else self.interval
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
        finally:
            logger.info("Overnote daemon stopped")

    def stop(self) -> None:
        self._shutdown = True
        if self._wakeup is not None:
            self._wakeup.set()

    # ─── Status ──────────────────────────────────────────────────────

    def status(self) -> DaemonStatus:
        st = self.tracker.state
        return DaemonStatus(
            current_context=st.current_context,
            previous_context=st.previous_context,
            locked=st.locked,
            locked_context=st.locked_context,
            last_signal_failed=st.last_signal_failed,
            permission_denied=self.permission_denied,
            window_focused=self.window_focused,
            window_visible=self.window_visible,
            ticks=self._ticks,
            changes=self._changes,
            last_probe_ms=self._last_probe_ms,
            updated_at=datetime.now(timezone.utc).isoformat(),
            errors=list(self._errors),
        )

    @staticmethod
    def load_status(path: Path | None = None) -> dict | None:
        """Load the last persisted daemon status."""
        path = path or config.STATUS_FILE
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except (json.JSONDecodeError, OSError):
            return None

    # ─── Internal Helpers ────────────────────────────────────────────

    async def _probe(self) -> WindowSignal | ProbeError:
        start = time.monotonic()
        try:
            signal = await asyncio.wait_for(self.source.probe(), timeout=self.probe_timeout)
        except asyncio.TimeoutError:
            logger.debug("Probe timed out after %.2fs", self.probe_timeout)
            return ProbeFailed(f"probe timed out after {self.probe_timeout:.2f}s")
        except PermissionDenied as e:
            await self._report_permission_denied(e)
            return e
        except ProbeError as e:
            logger.debug("Probe failed: %s", e)
            return e
        except Exception as e:
            logger.debug("Probe crashed", exc_info=True)
            return ProbeFailed(str(e))
        finally:
            self._last_probe_ms = (time.monotonic() - start) * 1000

        if self.permission_denied:
            logger.info("Window access restored")
            self.permission_denied = False
            self._permission_reported = False
        return signal

    async def _report_permission_denied(self, err: PermissionDenied) -> None:
        """Escalate a denial once; later denials are only counted."""
        self.permission_denied = True
        if self._permission_reported:
            return
        self._permission_reported = True
        logger.error("Window inspection denied: %s. %s", err, PERMISSION_HINT)
        self._record_error(f"Permission denied: {err}")
        if self.notify_enabled:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, Notifier.alert_permission_denied, str(err))

    async def _after(self, transition: Transition, force_save: bool = False) -> None:
        if transition.changed:
            self._changes += 1
            await self._dispatch(transition.context)
        if transition.changed or force_save:
            self._save_status()

    async def _dispatch(self, context: str) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(context)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self._record_error(f"Handler error: {e}")
                logger.exception("Context handler %r failed", handler)

    def _record_error(self, message: str) -> None:
        self._errors.append(message)
        del self._errors[:-_MAX_ERRORS]

    def _save_status(self) -> None:
        """Persist status to status.json (only when a status file is set)."""
        if self.status_file is None:
            return
        try:
            self.status_file.parent.mkdir(parents=True, exist_ok=True)
            self.status_file.write_text(
                json.dumps(self.status().to_dict(), indent=2, ensure_ascii=False)
            )
        except OSError as e:
            logger.error("Failed to save status: %s", e)
