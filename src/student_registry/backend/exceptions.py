"""Custom exceptions for the remote backend client.

Every failure coming from the data or auth API is normalized into a
``BackendError`` whose ``kind`` is one of a closed set of ``ErrorKind`` values.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import httpx


class ErrorKind(StrEnum):
    """Closed classification of remote failures."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    NETWORK = "network"
    UNKNOWN = "unknown"


class BackendError(Exception):
    """Base exception for remote backend errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class InvalidRequestError(BackendError):
    """The backend rejected the submitted data (constraint or format violation)."""

    kind = ErrorKind.VALIDATION


class RecordNotFoundError(BackendError):
    """The requested record does not exist or is not visible to the user."""

    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(BackendError):
    """The user is not authenticated or not allowed to perform the operation."""

    kind = ErrorKind.PERMISSION


class NetworkError(BackendError):
    """The backend could not be reached."""

    kind = ErrorKind.NETWORK


ERROR_CLASSES: dict[ErrorKind, type[BackendError]] = {
    ErrorKind.VALIDATION: InvalidRequestError,
    ErrorKind.NOT_FOUND: RecordNotFoundError,
    ErrorKind.PERMISSION: PermissionDeniedError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.UNKNOWN: BackendError,
}

NETWORK_STATUSES = {502, 503, 504}
PERMISSION_STATUSES = {401, 403}
VALIDATION_STATUSES = {400, 409, 422}

NOT_FOUND_CODES = {"PGRST116"}
PERMISSION_CODES = {
    "42501",
    "PGRST301",
    "PGRST302",
    "invalid_credentials",
    "invalid_grant",
    "bad_jwt",
    "session_not_found",
    "refresh_token_not_found",
}
# Postgres integrity constraint (23xxx) and data exception (22xxx) classes
VALIDATION_CODE_PREFIXES = ("22", "23")


def classify(status_code: int, code: str | None = None) -> ErrorKind:
    """Classify a failed response by HTTP status and backend error code.

    Backend codes take precedence over the HTTP status.

    Args:
        status_code: HTTP status of the failed response.
        code: PostgREST / Postgres / auth error code, if any.

    Returns:
        The error kind.
    """
    if code:
        if code in NOT_FOUND_CODES:
            return ErrorKind.NOT_FOUND
        if code in PERMISSION_CODES:
            return ErrorKind.PERMISSION
        if code[:2] in VALIDATION_CODE_PREFIXES and code[:2].isdigit():
            return ErrorKind.VALIDATION

    if status_code in NETWORK_STATUSES:
        return ErrorKind.NETWORK
    if status_code in PERMISSION_STATUSES:
        return ErrorKind.PERMISSION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code in VALIDATION_STATUSES:
        return ErrorKind.VALIDATION
    return ErrorKind.UNKNOWN


def _extract_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


def _extract_code(body: Any) -> str | None:
    if isinstance(body, dict):
        for key in ("code", "error_code"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        # OAuth-style bodies put the code under "error"
        if body.get("error_description") and isinstance(body.get("error"), str):
            return str(body["error"])
    return None


def error_from_response(response: httpx.Response) -> BackendError:
    """Build the matching BackendError for a failed response.

    Args:
        response: Non-success response from the data or auth API.

    Returns:
        Exception instance carrying the remote message when available.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    fallback = response.text.strip() or f"Request failed with status {response.status_code}"
    message = _extract_message(body, fallback)
    code = _extract_code(body)
    kind = classify(response.status_code, code)
    return ERROR_CLASSES[kind](message, status_code=response.status_code, code=code)


def error_from_transport(exc: httpx.TransportError) -> NetworkError:
    """Wrap a connection or timeout failure."""
    return NetworkError(f"Could not reach the server: {exc}")
