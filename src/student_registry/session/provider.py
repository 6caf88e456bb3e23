"""SessionProvider - the only writer of a SessionContext's signed-in session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from student_registry.backend.exceptions import BackendError, ErrorKind

if TYPE_CHECKING:
    from student_registry.backend.auth import AuthClient
    from student_registry.backend.models import AuthSession
    from student_registry.session.context import SessionContext

logger = logging.getLogger("student_registry.session")


class SessionProvider:
    """Signs users in and out and keeps their access token fresh."""

    def __init__(self, auth: AuthClient) -> None:
        self._auth = auth

    async def sign_in(self, context: SessionContext, email: str, password: str) -> AuthSession:
        """Sign in with email and password and publish the new session.

        Raises:
            BackendError: If the auth API rejects the credentials or fails
        """
        session = await self._auth.sign_in_with_password(email, password)
        context._publish(session)
        return session

    async def sign_out(self, context: SessionContext) -> None:
        """Revoke the remote session and clear the local one.

        The local session is cleared even when the remote call fails.
        """
        auth = context.auth
        if auth is None:
            return
        try:
            await self._auth.sign_out(auth.access_token)
        except BackendError as e:
            logger.warning("Remote sign-out failed (%s): %s", e.kind, e.message)
        finally:
            context._publish(None)

    async def current_session(self, context: SessionContext) -> AuthSession | None:
        """Get the usable session for the context, refreshing it when expired.

        Returns:
            The active session, or None if the user must sign in again.
        """
        auth = context.auth
        if auth is None:
            return None
        if not auth.is_expired():
            return auth
        if not auth.refresh_token:
            logger.info("Session for user %s expired", auth.user.id)
            context._publish(None)
            return None

        try:
            refreshed = await self._auth.refresh_session(auth.refresh_token)
        except BackendError as e:
            if e.kind == ErrorKind.PERMISSION:
                logger.info("Refresh rejected for user %s: %s", auth.user.id, e.message)
                context._publish(None)
            else:
                logger.warning("Could not refresh session (%s): %s", e.kind, e.message)
            return None

        context._publish(refreshed)
        return refreshed
