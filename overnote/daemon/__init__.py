"""
Overnote Daemon: Package init.

Re-exports from sub-modules.
"""

from overnote.daemon.models import PERMISSION_HINT, DaemonStatus  # noqa: F401
from overnote.daemon.notifier import Notifier  # noqa: F401
from overnote.daemon.core import ContextDaemon  # noqa: F401
