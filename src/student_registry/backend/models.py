"""Data models for the auth API."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

# Treat tokens this close to expiry as expired.
EXPIRY_MARGIN_SECONDS = 30


@dataclass(frozen=True)
class User:
    """Authenticated user identity."""

    id: str
    email: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> User:
        return cls(id=str(payload["id"]), email=payload.get("email"))


@dataclass(frozen=True)
class AuthSession:
    """Tokens and identity returned by a successful sign-in or refresh."""

    access_token: str
    user: User
    refresh_token: str | None = None
    expires_at: float | None = None  # epoch seconds

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AuthSession:
        expires_at = payload.get("expires_at")
        if expires_at is None and payload.get("expires_in") is not None:
            expires_at = time.time() + float(payload["expires_in"])
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=float(expires_at) if expires_at is not None else None,
            user=User.from_payload(payload["user"]),
        )

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return current >= self.expires_at - EXPIRY_MARGIN_SECONDS
