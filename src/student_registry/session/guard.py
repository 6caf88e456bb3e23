"""AccessGuard - decides whether a visitor may reach a data page."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from student_registry.backend.models import AuthSession
    from student_registry.session.context import SessionContext
    from student_registry.session.provider import SessionProvider

logger = logging.getLogger("student_registry.session.guard")


class GuardState(StrEnum):
    """Access guard state."""

    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AccessGuard:
    """Three-state guard bound to one session context.

    Starts in CHECKING until ``check`` resolves the session, then follows
    every later change published by the context (e.g. a sign-out).
    """

    def __init__(self, context: SessionContext, provider: SessionProvider) -> None:
        self._context = context
        self._provider = provider
        self.state = GuardState.CHECKING
        self._unsubscribe = context.subscribe(self._on_session_change)

    @property
    def allowed(self) -> bool:
        return self.state == GuardState.AUTHENTICATED

    def _on_session_change(self, auth: AuthSession | None) -> None:
        self.state = GuardState.AUTHENTICATED if auth is not None else GuardState.UNAUTHENTICATED

    async def check(self) -> GuardState:
        """Resolve the current session and update the state."""
        self.state = GuardState.CHECKING
        session = await self._provider.current_session(self._context)
        self.state = GuardState.AUTHENTICATED if session is not None else GuardState.UNAUTHENTICATED
        logger.debug("Session %s: %s", self._context.id, self.state)
        return self.state

    def close(self) -> None:
        """Stop following session changes."""
        self._unsubscribe()
