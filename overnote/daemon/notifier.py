"""macOS native notifications for the Overnote daemon."""

from __future__ import annotations

import logging
import subprocess
import sys

from overnote.daemon.models import PERMISSION_HINT

logger = logging.getLogger("overnote.daemon")


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class Notifier:
    """macOS native notifications via osascript."""

    @staticmethod
    def notify(title: str, message: str, sound: str = "Submarine") -> bool:
        """Send a macOS notification. Returns True on success."""
        if sys.platform != "darwin":
            logger.debug("Notifications unavailable on %s: %s", sys.platform, title)
            return False
        script = (
            f'display notification "{_escape(message)}" '
            f'with title "{_escape(title)}" sound name "{sound}"'
        )
        try:
            subprocess.run(
                ["osascript", "-e", script],
                capture_output=True,
                timeout=5,
            )
            return True
        except (subprocess.SubprocessError, OSError) as e:
            logger.warning("Notification failed: %s", e)
            return False

    @staticmethod
    def alert_permission_denied(detail: str = "") -> bool:
        message = PERMISSION_HINT
        if detail:
            message = f"{PERMISSION_HINT} ({detail[:80]})"
        return Notifier.notify("Overnote: window access denied", message, sound="Basso")
