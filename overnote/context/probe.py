"""
Overnote: Window Signal Sources.

Adapters around the OS capability that reports the frontmost window.
A probe either returns a ``WindowSignal`` or raises ``PermissionDenied``
/ ``ProbeFailed``; it never blocks longer than its timeout.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable

from overnote import config
from overnote.context.signals import WindowSignal
from overnote.exceptions import PermissionDenied, ProbeError, ProbeFailed

logger = logging.getLogger("overnote.probe")

_SEPARATOR = "|||"

# osascript error fragments meaning "the user has not granted access".
PERMISSION_MARKERS = (
    "-1719",
    "-1743",
    "-25211",
    "not allowed assistive access",
    "not authorized to send apple events",
    "not authorised to send apple events",
    "screen recording",
)

FRONT_WINDOW_SCRIPT = f"""
tell application "System Events"
    set frontApp to first application process whose frontmost is true
    set appName to name of frontApp
    set windowName to ""
    if (count of windows of frontApp) > 0 then
        set windowName to name of front window of frontApp
    end if
    return appName & "{_SEPARATOR}" & windowName
end tell
"""

# Browsers whose active tab URL can be read, and the script for each.
_CHROMIUM_URL = 'tell application "{app}" to return URL of active tab of front window'
_SAFARI_URL = 'tell application "{app}" to return URL of front document'

BROWSER_URL_SCRIPTS: dict[str, str] = {
    "Google Chrome": _CHROMIUM_URL,
    "Brave Browser": _CHROMIUM_URL,
    "Microsoft Edge": _CHROMIUM_URL,
    "Chromium": _CHROMIUM_URL,
    "Arc": _CHROMIUM_URL,
    "Vivaldi": _CHROMIUM_URL,
    "Safari": _SAFARI_URL,
    "Safari Technology Preview": _SAFARI_URL,
}


class WindowSignalSource(ABC):
    """Something that can report the frontmost window."""

    @abstractmethod
    async def probe(self) -> WindowSignal:
        """Return the current window snapshot or raise a ``ProbeError``."""


def is_permission_error(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in PERMISSION_MARKERS)


def run_osascript(script: str, timeout: float) -> str:
    """Run one AppleScript snippet and return its stripped stdout."""
    try:
        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ProbeFailed(f"osascript timed out after {timeout:.2f}s") from e
    except OSError as e:
        raise ProbeFailed(f"osascript unavailable: {e}") from e

    if result.returncode != 0:
        err = (result.stderr or "").strip()
        if is_permission_error(err):
            raise PermissionDenied(err or "window inspection not permitted")
        raise ProbeFailed(err or f"osascript exited with {result.returncode}")
    return (result.stdout or "").strip()


class AppleScriptSource(WindowSignalSource):
    """macOS source built on System Events via ``osascript``.

    Reads the frontmost process and window title, then the active tab URL
    when the frontmost app is a known browser.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else config.PROBE_TIMEOUT

    async def probe(self) -> WindowSignal:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.probe_sync)

    def probe_sync(self) -> WindowSignal:
        deadline = time.monotonic() + self.timeout
        out = run_osascript(FRONT_WINDOW_SCRIPT, self.timeout)
        if not out:
            raise ProbeFailed("no frontmost application")

        app_name, _, title = out.partition(_SEPARATOR)
        url = None
        template = BROWSER_URL_SCRIPTS.get(app_name.strip())
        remaining = deadline - time.monotonic()
        if template and remaining > 0:
            try:
                url = run_osascript(template.format(app=app_name.strip()), remaining)
            except ProbeError as e:
                # Title and owner are still useful without the URL.
                logger.debug("Could not read URL from %s: %s", app_name, e)

        return WindowSignal(title=title, url=url, owner_name=app_name)


class StaticSource(WindowSignalSource):
    """Replays a scripted sequence of signals and errors.

    Items may be ``WindowSignal`` objects, ``{title, url, owner}`` dicts
    or ``ProbeError`` instances (which are raised). Raises ``ProbeFailed``
    once the script is exhausted, unless ``repeat_last`` is set.
    """

    def __init__(self, items: Iterable[WindowSignal | dict | ProbeError], repeat_last: bool = False):
        self._items: deque = deque(items)
        self._last: WindowSignal | ProbeError | None = None
        self.repeat_last = repeat_last
        self.calls = 0

    def push(self, item: WindowSignal | dict | ProbeError) -> None:
        self._items.append(item)

    async def probe(self) -> WindowSignal:
        self.calls += 1
        if self._items:
            item = self._items.popleft()
            self._last = WindowSignal.from_dict(item) if isinstance(item, dict) else item
        elif not self.repeat_last or self._last is None:
            raise ProbeFailed("no more scripted signals")
        if isinstance(self._last, ProbeError):
            raise self._last
        return self._last


class UnsupportedSource(WindowSignalSource):
    """Source for platforms without a window inspection backend."""

    def __init__(self, platform: str = sys.platform):
        self.platform = platform

    async def probe(self) -> WindowSignal:
        raise ProbeFailed(f"window inspection is not supported on {self.platform}")


def default_source(timeout: float | None = None) -> WindowSignalSource:
    """Pick the window source for the running platform."""
    if sys.platform == "darwin":
        return AppleScriptSource(timeout=timeout)
    logger.warning("No window source for %s, context will stay unknown", sys.platform)
    return UnsupportedSource()
