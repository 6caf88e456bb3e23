"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from student_registry.backend import (
    AuthSession,
    BackendError,
    PermissionDeniedError,
    RecordNotFoundError,
    User,
)
from student_registry.config import BackendConfig, LoggingConfig, Settings
from student_registry.records import Student, StudentDraft
from student_registry.web import create_app

TEST_EMAIL = "registrar@school.edu"
TEST_PASSWORD = "correct-horse"
TEST_USER = User(id="user-1", email=TEST_EMAIL)


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Fakes


class FakeAuth:
    """In-memory stand-in for AuthClient."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.sign_out_error: BackendError | None = None
        self.refresh_error: BackendError | None = None

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self.calls.append(("sign_in", email))
        if email != TEST_EMAIL or password != TEST_PASSWORD:
            raise PermissionDeniedError("Invalid login credentials", status_code=400)
        return AuthSession(access_token="access-1", refresh_token="refresh-1", user=TEST_USER)

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        self.calls.append(("refresh", refresh_token))
        if self.refresh_error is not None:
            raise self.refresh_error
        return AuthSession(access_token="access-2", refresh_token="refresh-2", user=TEST_USER)

    async def sign_out(self, access_token: str) -> None:
        self.calls.append(("sign_out", access_token))
        if self.sign_out_error is not None:
            raise self.sign_out_error


class FakeStudents:
    """In-memory stand-in for StudentsTable that records every call."""

    def __init__(self) -> None:
        self.rows: dict[str, Student] = {}
        self.calls: list[tuple[str, Any]] = []
        self.error: BackendError | None = None
        self.during_fetch: Callable[[], None] | None = None
        self._next_id = 1

    def add(self, name: str, enrollment_id: str, **fields: Any) -> Student:
        student_id = f"s-{self._next_id}"
        self._next_id += 1
        student = Student(
            id=student_id,
            name=name,
            enrollment_id=enrollment_id,
            birth_date=fields.pop("birth_date", date(2010, 5, 4)),
            owner_id=fields.pop("owner_id", TEST_USER.id),
            created_at=fields.pop("created_at", datetime(2024, 1, 15, tzinfo=timezone.utc)),
            **fields,
        )
        self.rows[student_id] = student
        return student

    def _fetched(self) -> None:
        if self.error is not None:
            raise self.error
        if self.during_fetch is not None:
            self.during_fetch()

    async def list_students(self, token: str, search: str | None = None) -> list[Student]:
        self.calls.append(("list", search))
        self._fetched()
        term = (search or "").lower()
        found = [
            s
            for s in self.rows.values()
            if term in s.name.lower() or term in s.enrollment_id.lower()
        ]
        return sorted(found, key=lambda s: s.name)

    async def get_student(self, token: str, student_id: str) -> Student:
        self.calls.append(("get", student_id))
        self._fetched()
        if student_id not in self.rows:
            raise RecordNotFoundError(f"Student {student_id} not found")
        return self.rows[student_id]

    async def insert_student(self, token: str, draft: StudentDraft, owner_id: str) -> Student:
        self.calls.append(("insert", (draft, owner_id)))
        if self.error is not None:
            raise self.error
        fields = draft.to_payload()
        fields["birth_date"] = draft.birth_date
        return self.add(owner_id=owner_id, **fields)

    async def update_student(self, token: str, student_id: str, draft: StudentDraft) -> Student:
        self.calls.append(("update", (student_id, draft)))
        if self.error is not None:
            raise self.error
        if student_id not in self.rows:
            raise RecordNotFoundError(f"Student {student_id} not found")
        updated = replace(
            self.rows[student_id],
            name=draft.name,
            enrollment_id=draft.enrollment_id,
            birth_date=draft.birth_date,
            email=draft.email,
            phone=draft.phone,
            class_name=draft.class_name,
        )
        self.rows[student_id] = updated
        return updated

    async def delete_student(self, token: str, student_id: str) -> None:
        self.calls.append(("delete", student_id))
        if self.error is not None:
            raise self.error
        if self.rows.pop(student_id, None) is None:
            raise RecordNotFoundError(f"Student {student_id} not found")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeBackend:
    """Stand-in for BackendClient exposing the fake auth and students helpers."""

    def __init__(self) -> None:
        self.auth = FakeAuth()
        self.students = FakeStudents()
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


# Shared fixtures


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake backend, with logging kept local."""
    return Settings(
        backend=BackendConfig(url="https://project.backend.example", api_key="anon-key"),
        logging=LoggingConfig(console=False),
    )


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Create an in-memory backend."""
    return FakeBackend()


@pytest.fixture
def fake_students(fake_backend: FakeBackend) -> FakeStudents:
    """The students collection of the fake backend."""
    return fake_backend.students


@pytest.fixture
def credentials() -> dict[str, str]:
    """Login form values accepted by the fake auth service."""
    return {"email": TEST_EMAIL, "password": TEST_PASSWORD}


@pytest.fixture
def client(settings: Settings, fake_backend: FakeBackend) -> Iterator[TestClient]:
    """Test client for an app wired to the fake backend (not signed in)."""
    app = create_app(settings=settings, backend=fake_backend)  # type: ignore[arg-type]
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signed_in_client(client: TestClient, credentials: dict[str, str]) -> TestClient:
    """Test client whose session is signed in as TEST_USER."""
    response = client.post(
        "/login",
        data=credentials,
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client
