"""Exception types raised by the support-bot core."""

from __future__ import annotations


class SupportBotError(Exception):
    """Base class for all support-bot errors."""


class SessionNotFoundError(SupportBotError, LookupError):
    """Raised when a mutation targets a session id the store does not hold."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id
