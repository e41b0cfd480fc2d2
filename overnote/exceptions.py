"""
Overnote: Custom Exceptions.

Typed error hierarchy shared by the window probe, the context engine
and the notes backend client.
"""


class OvernoteError(Exception):
    """Base exception for all Overnote errors."""


class ProbeError(OvernoteError):
    """Raised when the active window could not be inspected."""


class PermissionDenied(ProbeError):
    """Raised when the OS refuses window inspection.

    Usually means the Accessibility / Screen Recording / Automation
    permission has not been granted. Retrying quickly will not help.
    """


class ProbeFailed(ProbeError):
    """Raised for any other probe failure (timeout, OS error, no window)."""


class NotesBackendError(OvernoteError):
    """The notes backend answered with an error status."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Notes backend error {status_code}: {detail}")


class BackendUnavailable(NotesBackendError):
    """The notes backend could not be reached or failed server-side."""
