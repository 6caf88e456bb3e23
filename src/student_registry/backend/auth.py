"""AuthClient - email/password sessions against the hosted auth API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from student_registry.backend.models import AuthSession, User

if TYPE_CHECKING:
    from student_registry.backend.client import BackendClient

logger = logging.getLogger("student_registry.backend.auth")


class AuthClient:
    """Thin wrapper over the auth endpoints (GoTrue conventions)."""

    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    @property
    def url(self) -> str:
        return self._backend.auth_url

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password.

        Args:
            email: Account email
            password: Account password

        Returns:
            The new session.

        Raises:
            PermissionDeniedError: If the credentials are rejected
            BackendError: For any other failure
        """
        logger.info("Signing in %s", email)
        response = await self._backend.request(
            "POST",
            f"{self.url}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = AuthSession.from_payload(response.json())
        logger.info("Signed in user %s", session.user.id)
        return session

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        """Exchange a refresh token for a new session.

        Raises:
            PermissionDeniedError: If the refresh token is no longer valid
        """
        logger.debug("Refreshing session")
        response = await self._backend.request(
            "POST",
            f"{self.url}/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return AuthSession.from_payload(response.json())

    async def get_user(self, access_token: str) -> User:
        """Get the user the access token belongs to."""
        response = await self._backend.request("GET", f"{self.url}/user", token=access_token)
        return User.from_payload(response.json())

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session on the server."""
        await self._backend.request("POST", f"{self.url}/logout", token=access_token)
        logger.info("Signed out")
