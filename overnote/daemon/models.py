"""Daemon data classes and constants."""

from __future__ import annotations

from dataclasses import dataclass, field

# ─── Constants ────────────────────────────────────────────────────────

PERMISSION_HINT = (
    "Grant Accessibility and Automation access in "
    "System Settings > Privacy & Security, then restart Overnote."
)


# ─── Data Classes ─────────────────────────────────────────────────────


@dataclass
class DaemonStatus:
    """Snapshot of the context daemon, persisted to disk on changes."""

    current_context: str
    previous_context: str
    locked: bool = False
    locked_context: str | None = None
    last_signal_failed: bool = False
    permission_denied: bool = False
    window_focused: bool = False
    window_visible: bool = True
    ticks: int = 0
    changes: int = 0
    last_probe_ms: float = 0.0
    updated_at: str = ""
    errors: list[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.permission_denied and not self.last_signal_failed

    def to_dict(self) -> dict:
        return {
            "current_context": self.current_context,
            "previous_context": self.previous_context,
            "locked": self.locked,
            "locked_context": self.locked_context,
            "last_signal_failed": self.last_signal_failed,
            "permission_denied": self.permission_denied,
            "window_focused": self.window_focused,
            "window_visible": self.window_visible,
            "ticks": self.ticks,
            "changes": self.changes,
            "last_probe_ms": round(self.last_probe_ms, 1),
            "updated_at": self.updated_at,
            "healthy": self.healthy,
            "errors": self.errors,
        }
