# chefbot/ordering/session_store.py
"""
In-process container for conversation sessions.

Structural changes (create, sweep) take the store lock. Fields of an
individual Session are not guarded: the caller processes one message per
conversation key at a time.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from .domain import Session

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    def __init__(self, max_age: timedelta = timedelta(hours=1), clock: Clock = utc_clock) -> None:
        self.max_age = max_age
        self.clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, conversation_key: object) -> bool:
        return conversation_key in self._sessions

    def get(self, conversation_key: str) -> Optional[Session]:
        return self._sessions.get(conversation_key)

    def get_or_create(self, conversation_key: str, platform: str = "web") -> Session:
        session = self._sessions.get(conversation_key)
        if session is not None:
            return session

        with self._lock:
            session = self._sessions.get(conversation_key)
            if session is None:
                now = self.clock()
                session = Session(
                    conversation_key=conversation_key,
                    platform=platform,
                    created_at=now,
                    last_activity=now,
                )
                self._sessions[conversation_key] = session
                logger.info("New session %s (%s)", conversation_key, platform)
        return session

    def touch(self, session: Session) -> None:
        session.last_activity = self.clock()

    def is_expired(self, session: Session, max_age: Optional[timedelta] = None, now: Optional[datetime] = None) -> bool:
        limit = max_age if max_age is not None else self.max_age
        current = now if now is not None else self.clock()
        return current - session.last_activity > limit

    def sweep(self, max_age: Optional[timedelta] = None) -> List[str]:
        """Drop sessions idle for longer than `max_age`; returns their keys."""
        now = self.clock()
        with self._lock:
            expired = [
                key for key, s in self._sessions.items()
                if self.is_expired(s, max_age=max_age, now=now)
            ]
            for key in expired:
                del self._sessions[key]

        if expired:
            logger.info("Swept %d idle session(s)", len(expired))
        return expired
