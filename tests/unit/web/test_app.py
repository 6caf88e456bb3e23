"""Unit tests for the application factory."""

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient

from student_registry.backend import RecordNotFoundError
from student_registry.config import AppConfig, Settings
from student_registry.web import create_app
from student_registry.web.dependencies import session_store
from student_registry.web.templating import format_date


@pytest.mark.unit
class TestCreateApp:
    """Tests for create_app."""

    def test_secure_cookies(
        self, settings: Settings, fake_backend, credentials: dict[str, str]
    ) -> None:
        """Secure cookies can be required by configuration."""
        settings.app = AppConfig(secure_cookies=True)
        app = create_app(settings=settings, backend=fake_backend)

        with TestClient(app) as test_client:
            response = test_client.post("/login", data=credentials, follow_redirects=False)

        assert "Secure" in response.headers["set-cookie"]

    def test_idle_timeout_configured(self, settings: Settings, fake_backend) -> None:
        """The session store uses the configured idle timeout."""
        settings.app = AppConfig(session_idle_timeout=600)
        app = create_app(settings=settings, backend=fake_backend)

        with TestClient(app):
            assert session_store().idle_timeout == 600

    def test_custom_title(self, settings: Settings, fake_backend) -> None:
        """The configured title appears on every page."""
        settings.app = AppConfig(title="Escola Registry")
        app = create_app(settings=settings, backend=fake_backend)

        with TestClient(app) as test_client:
            assert "Escola Registry" in test_client.get("/login").text

    def test_backend_closed_on_shutdown(self, settings: Settings, fake_backend) -> None:
        """The lifespan closes the backend client."""
        app = create_app(settings=settings, backend=fake_backend)

        with TestClient(app):
            assert not fake_backend.closed

        assert fake_backend.closed

    def test_unhandled_backend_error(self, settings: Settings, fake_backend) -> None:
        """Backend errors escaping a route notify and return to the list."""
        app = create_app(settings=settings, backend=fake_backend)

        @app.get("/broken")
        async def broken() -> None:
            raise RecordNotFoundError("Student s-9 not found")

        with TestClient(app) as test_client:
            response = test_client.get("/broken", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/students"


@pytest.mark.unit
class TestFormatDate:
    """Tests for format_date."""

    def test_date(self) -> None:
        """Dates use day/month/year by default."""
        assert format_date(date(2010, 5, 4)) == "04/05/2010"

    def test_datetime_custom_format(self) -> None:
        """Datetimes accept a custom format."""
        assert format_date(datetime(2024, 1, 15, 10, 30), "%Y-%m-%d") == "2024-01-15"

    def test_none(self) -> None:
        """Missing values render empty."""
        assert format_date(None) == ""


@pytest.mark.unit
class TestSessionCookie:
    """Tests for the session middleware."""

    def test_anonymous_requests_store_nothing(self, client: TestClient) -> None:
        """Visitors without state get neither a cookie nor a stored context."""
        for _ in range(50):
            response = client.get("/login")
            assert "set-cookie" not in response.headers

        assert len(session_store()) == 0

    def test_cookie_issued_on_sign_in(self, client: TestClient, credentials: dict[str, str]) -> None:
        """Signing in issues an HTTP-only session cookie, once."""
        response = client.post("/login", data=credentials, follow_redirects=False)
        later = client.get("/students")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("student_registry_session=")
        assert "HttpOnly" in cookie
        assert "samesite=lax" in cookie.lower()
        assert "set-cookie" not in later.headers
        assert len(session_store()) == 1

    def test_unknown_cookie_cleared(self, client: TestClient) -> None:
        """A cookie naming no stored session is removed."""
        client.cookies.set("student_registry_session", "expired-session")

        response = client.get("/login")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("student_registry_session=")
        assert "max-age=0" in cookie.lower()
        assert len(session_store()) == 0
