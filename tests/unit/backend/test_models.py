"""Unit tests for auth models."""

from unittest.mock import patch

import pytest

from student_registry.backend import AuthSession, User
from student_registry.backend.models import EXPIRY_MARGIN_SECONDS


@pytest.mark.unit
class TestAuthSession:
    """Tests for AuthSession."""

    def test_from_payload(self) -> None:
        """Token responses are parsed."""
        session = AuthSession.from_payload(
            {
                "access_token": "access",
                "refresh_token": "refresh",
                "expires_at": 1700000000,
                "user": {"id": "user-1", "email": "a@b.co"},
            }
        )

        assert session.access_token == "access"
        assert session.refresh_token == "refresh"
        assert session.expires_at == 1700000000.0
        assert session.user == User(id="user-1", email="a@b.co")

    def test_expires_in_used_without_expires_at(self) -> None:
        """expires_at is derived from expires_in when missing."""
        with patch("student_registry.backend.models.time.time", return_value=1000.0):
            session = AuthSession.from_payload(
                {"access_token": "a", "expires_in": 3600, "user": {"id": "u"}}
            )

        assert session.expires_at == 4600.0

    def test_no_expiry_never_expires(self) -> None:
        """Sessions without an expiry are never considered expired."""
        session = AuthSession(access_token="a", user=User(id="u"))

        assert not session.is_expired()

    def test_expired_within_margin(self) -> None:
        """Tokens about to expire count as expired."""
        session = AuthSession(access_token="a", user=User(id="u"), expires_at=1000.0)

        assert session.is_expired(now=1000.0 - EXPIRY_MARGIN_SECONDS)
        assert not session.is_expired(now=1000.0 - EXPIRY_MARGIN_SECONDS - 1)
