"""Backend - client for the hosted data and auth APIs."""

from student_registry.backend.auth import AuthClient
from student_registry.backend.client import BackendClient
from student_registry.backend.exceptions import (
    BackendError,
    ErrorKind,
    InvalidRequestError,
    NetworkError,
    PermissionDeniedError,
    RecordNotFoundError,
    classify,
)
from student_registry.backend.models import AuthSession, User
from student_registry.backend.students import StudentsTable, search_filter

__all__ = [
    "AuthClient",
    "AuthSession",
    "BackendClient",
    "BackendError",
    "ErrorKind",
    "InvalidRequestError",
    "NetworkError",
    "PermissionDeniedError",
    "RecordNotFoundError",
    "StudentsTable",
    "User",
    "classify",
    "search_filter",
]
