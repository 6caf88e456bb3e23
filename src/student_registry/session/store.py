"""In-memory registry of session contexts keyed by cookie value."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from student_registry.session.context import SessionContext

logger = logging.getLogger("student_registry.session")

# Idle time after which a stored context is dropped
DEFAULT_IDLE_TIMEOUT = 8 * 60 * 60


class SessionStore:
    """Holds the SessionContext of every browser with state worth keeping.

    Contexts not used for ``idle_timeout`` seconds are dropped; the visitor
    then starts over with a fresh, signed-out context.
    """

    def __init__(
        self,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._contexts: dict[str, SessionContext] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._contexts)

    def _expired(self, session_id: str, now: float) -> bool:
        return now - self._last_seen[session_id] > self.idle_timeout

    def get(self, session_id: str | None) -> SessionContext | None:
        """Look up a context by cookie value and mark it as used."""
        if not session_id or session_id not in self._contexts:
            return None
        now = self._clock()
        if self._expired(session_id, now):
            logger.debug("Session %s expired", session_id)
            self.discard(session_id)
            return None
        self._last_seen[session_id] = now
        return self._contexts[session_id]

    def save(self, context: SessionContext) -> None:
        """Store a context, or refresh its last use if already stored."""
        now = self._clock()
        if context.id not in self._contexts:
            self.purge_expired()
            self._contexts[context.id] = context
            logger.debug("Stored session %s", context.id)
        self._last_seen[context.id] = now

    def discard(self, session_id: str) -> None:
        self._contexts.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def purge_expired(self) -> int:
        """Drop every context idle for longer than the timeout.

        Returns:
            Number of contexts dropped.
        """
        now = self._clock()
        expired = [sid for sid in self._contexts if self._expired(sid, now)]
        for session_id in expired:
            self.discard(session_id)
        if expired:
            logger.info("Dropped %d idle session(s)", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._contexts.clear()
        self._last_seen.clear()
