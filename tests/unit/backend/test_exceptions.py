"""Unit tests for remote error classification."""

import httpx
import pytest

from student_registry.backend import (
    BackendError,
    ErrorKind,
    InvalidRequestError,
    NetworkError,
    PermissionDeniedError,
    RecordNotFoundError,
    classify,
)
from student_registry.backend.exceptions import error_from_response, error_from_transport


@pytest.mark.unit
class TestClassify:
    """Tests for classify."""

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (400, ErrorKind.VALIDATION),
            (409, ErrorKind.VALIDATION),
            (422, ErrorKind.VALIDATION),
            (401, ErrorKind.PERMISSION),
            (403, ErrorKind.PERMISSION),
            (404, ErrorKind.NOT_FOUND),
            (502, ErrorKind.NETWORK),
            (503, ErrorKind.NETWORK),
            (504, ErrorKind.NETWORK),
            (500, ErrorKind.UNKNOWN),
            (418, ErrorKind.UNKNOWN),
        ],
    )
    def test_by_status(self, status_code: int, expected: ErrorKind) -> None:
        """Without a code the HTTP status decides."""
        assert classify(status_code) == expected

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("PGRST116", ErrorKind.NOT_FOUND),
            ("42501", ErrorKind.PERMISSION),
            ("23505", ErrorKind.VALIDATION),
            ("22007", ErrorKind.VALIDATION),
            ("invalid_credentials", ErrorKind.PERMISSION),
        ],
    )
    def test_code_takes_precedence(self, code: str, expected: ErrorKind) -> None:
        """Backend codes win over the HTTP status."""
        assert classify(500, code) == expected

    def test_unknown_code_falls_back_to_status(self) -> None:
        """Unrecognized codes leave the status to decide."""
        assert classify(404, "XX000") == ErrorKind.NOT_FOUND


@pytest.mark.unit
class TestErrorFromResponse:
    """Tests for error_from_response."""

    def test_postgrest_error_body(self) -> None:
        """Message and code come from a PostgREST error body."""
        response = httpx.Response(
            409,
            json={
                "code": "23505",
                "message": 'duplicate key value violates unique constraint "students_enrollment_id_key"',
                "details": None,
                "hint": None,
            },
        )

        error = error_from_response(response)

        assert isinstance(error, InvalidRequestError)
        assert error.kind == ErrorKind.VALIDATION
        assert error.code == "23505"
        assert error.status_code == 409
        assert error.message.startswith("duplicate key value")

    def test_single_object_with_no_rows(self) -> None:
        """406 with PGRST116 is a not-found."""
        response = httpx.Response(
            406,
            json={"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"},
        )

        assert isinstance(error_from_response(response), RecordNotFoundError)

    def test_oauth_error_body(self) -> None:
        """Auth errors using error/error_description are understood."""
        response = httpx.Response(
            400,
            json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
        )

        error = error_from_response(response)

        assert isinstance(error, PermissionDeniedError)
        assert error.message == "Invalid login credentials"
        assert error.code == "invalid_grant"

    def test_auth_msg_body(self) -> None:
        """Auth errors using code/msg are understood."""
        response = httpx.Response(
            400, json={"code": 400, "error_code": "invalid_credentials", "msg": "Invalid login credentials"}
        )

        error = error_from_response(response)

        assert error.kind == ErrorKind.PERMISSION
        assert error.message == "Invalid login credentials"

    def test_non_json_body(self) -> None:
        """Plain text bodies become the message."""
        error = error_from_response(httpx.Response(503, text="upstream unavailable"))

        assert isinstance(error, NetworkError)
        assert error.message == "upstream unavailable"

    def test_empty_body(self) -> None:
        """A generic message is used when the body is empty."""
        error = error_from_response(httpx.Response(500))

        assert type(error) is BackendError
        assert error.kind == ErrorKind.UNKNOWN
        assert error.message == "Request failed with status 500"


@pytest.mark.unit
class TestErrorFromTransport:
    """Tests for error_from_transport."""

    def test_wraps_connect_error(self) -> None:
        """Transport failures are network errors."""
        error = error_from_transport(httpx.ConnectError("connection refused"))

        assert error.kind == ErrorKind.NETWORK
        assert "connection refused" in error.message
