"""Exceptions raised by codex-history operations."""


class HistoryError(Exception):
    """Base class for codex-history errors."""


class SessionNotFoundError(HistoryError, FileNotFoundError):
    """No transcript file could be located for a session id."""

    def __init__(self, session_id: str, message: str | None = None) -> None:
        self.session_id = session_id
        super().__init__(message or f"Session file not found: id={session_id}")


class InvalidTransitionError(HistoryError, ValueError):
    """A transcript is already in the requested location."""

    def __init__(self, session_id: str, message: str) -> None:
        self.session_id = session_id
        super().__init__(message)


class LogIntegrityError(HistoryError, RuntimeError):
    """The history log could not be read back reliably."""
