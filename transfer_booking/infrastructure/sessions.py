"""
In-process registry of live wizard sessions.

A session is released when its booking is submitted or after it has gone
untouched for ``idle_ttl_seconds``.  Expired sessions are swept lazily on
``add`` and ``get``; no background task is needed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from transfer_booking.services.session import BookingSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(
        self,
        idle_ttl_seconds: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.idle_ttl_seconds = idle_ttl_seconds
        self.clock = clock
        self._sessions: dict[str, BookingSession] = {}
        self._last_seen: dict[str, float] = {}

    def add(self, session: BookingSession) -> BookingSession:
        self.sweep()
        self._sessions[session.id] = session
        self._last_seen[session.id] = self.clock()
        logger.info("Session %s started", session.id)
        return session

    def get(self, session_id: str) -> Optional[BookingSession]:
        self.sweep()
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self.clock()
        return session

    def remove(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if session is not None:
            session.close()
            logger.info("Session %s closed", session_id)

    def sweep(self) -> int:
        """Close every session idle for longer than the TTL."""
        cutoff = self.clock() - self.idle_ttl_seconds
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for sid in expired:
            logger.info("Session %s expired after %ss idle", sid, self.idle_ttl_seconds)
            self.remove(sid)
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
