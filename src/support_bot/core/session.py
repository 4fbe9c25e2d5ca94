"""In-memory session store with per-user indexing and idle expiry."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable

from support_bot.config import DEFAULT_WELCOME_MESSAGE
from support_bot.core.errors import SessionNotFoundError
from support_bot.core.models import Message, Session, utcnow
from support_bot.core.types import MessageType
from support_bot.log import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Owns every live session plus a user_id -> [session_id] index.

    Each public method is a single critical section, so the primary map and
    the user index are never observed out of step with each other.
    """

    def __init__(
        self,
        max_history: int = 20,
        welcome_message: str = DEFAULT_WELCOME_MESSAGE,
        clock: Callable[[], datetime] = utcnow,
    ):
        if max_history <= 0:
            raise ValueError("max_history must be positive")
        self._max_history = max_history
        self._welcome_message = welcome_message
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._user_sessions: dict[str, list[str]] = {}
        self._lock = threading.RLock()

    @property
    def max_history(self) -> int:
        return self._max_history

    def create(self, user_id: str | None = None, title: str = "") -> Session:
        """Create a session seeded with a System welcome message."""
        now = self._clock()
        session = Session(user_id=user_id or None, title=title, created_at=now)
        session.add_message(
            Message(
                session_id=session.session_id,
                type=MessageType.SYSTEM,
                content=self._welcome_message,
                timestamp=now,
            ),
            self._max_history,
            now,
        )

        with self._lock:
            self._sessions[session.session_id] = session
            if session.user_id:
                self._user_sessions.setdefault(session.user_id, []).append(session.session_id)

        logger.info("session_created", session_id=session.session_id, user_id=user_id)
        return session

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_by_user(self, user_id: str) -> list[Session]:
        """Return the user's active sessions in creation order."""
        with self._lock:
            session_ids = self._user_sessions.get(user_id, [])
            sessions = [self._sessions.get(sid) for sid in session_ids]
        return [s for s in sessions if s is not None and s.active]

    def append_message(self, session_id: str, message: Message) -> Session:
        """Append *message* and enforce the history cap.

        Raises SessionNotFoundError if the session does not exist and
        ValueError if the message belongs to a different session.
        """
        if message.session_id != session_id:
            raise ValueError(
                f"Message belongs to session {message.session_id!r}, not {session_id!r}"
            )
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.add_message(message, self._max_history, self._clock())
            return session

    def delete(self, session_id: str) -> bool:
        with self._lock:
            removed = self._remove_locked(session_id)
        if removed:
            logger.info("session_deleted", session_id=session_id)
        return removed

    def sweep_expired(self, idle_timeout: timedelta, now: datetime | None = None) -> int:
        """Remove every session idle for longer than *idle_timeout*.

        Candidates are collected in one short critical section and then
        removed one at a time, re-checking idleness, so a session touched
        mid-sweep survives and request traffic is never blocked for the
        whole scan.
        """
        now = now or self._clock()
        with self._lock:
            candidates = [
                sid for sid, s in self._sessions.items() if s.is_idle(idle_timeout, now)
            ]

        removed = 0
        for session_id in candidates:
            with self._lock:
                session = self._sessions.get(session_id)
                if session is None or not session.is_idle(idle_timeout, now):
                    continue
                self._remove_locked(session_id)
            removed += 1
            logger.debug("session_swept", session_id=session_id, user_id=session.user_id)

        if removed:
            logger.info("sessions_swept", removed=removed, remaining=len(self))
        return removed

    def user_ids(self) -> list[str]:
        with self._lock:
            return list(self._user_sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def _remove_locked(self, session_id: str) -> bool:
        """Drop a session and its index entry. Caller must hold the lock."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.user_id:
            owned = self._user_sessions.get(session.user_id)
            if owned is not None:
                if session_id in owned:
                    owned.remove(session_id)
                if not owned:
                    del self._user_sessions[session.user_id]
        return True
