"""
Overnote: Configuration.
Shared settings and paths for the entire codebase.

Values come from the environment; ``reload()`` re-reads it so tests can
tweak variables without re-importing the module.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger("overnote.config")

UNKNOWN_CONTEXT = "Unknown Context"
NOTES_WINDOW_CONTEXT = "Notes Window"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default


def reload() -> None:
    """(Re)load every setting from the environment."""
    global OVERNOTE_DIR, CONFIG_FILE, STATUS_FILE
    global BACKEND_BASE_URL, BACKEND_TIMEOUT
    global POLL_INTERVAL_MS, PROBE_TIMEOUT, PERMISSION_RETRY

    # Base Paths
    OVERNOTE_DIR = Path(os.environ.get("OVERNOTE_DIR", str(Path.home() / ".overnote")))
    CONFIG_FILE = OVERNOTE_DIR / "config.json"
    STATUS_FILE = OVERNOTE_DIR / "status.json"

    # Notes Backend
    BACKEND_BASE_URL = os.environ.get("OVERNOTE_BACKEND_URL", "http://127.0.0.1:8000/api")
    BACKEND_TIMEOUT = _float_env("OVERNOTE_BACKEND_TIMEOUT", 5.0)

    # Context Polling
    POLL_INTERVAL_MS = int(_float_env("OVERNOTE_POLL_INTERVAL_MS", 500))
    PROBE_TIMEOUT = _float_env("OVERNOTE_PROBE_TIMEOUT", 0.4)  # must stay below the poll interval
    PERMISSION_RETRY = _float_env("OVERNOTE_PERMISSION_RETRY", 30.0)


def load_file_config(path: Path | None = None) -> dict:
    """Load optional overrides from ~/.overnote/config.json if it exists."""
    path = path or CONFIG_FILE
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level must be an object", path)
        return {}
    return data


reload()
