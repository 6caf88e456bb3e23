"""Session - observable per-browser session state and the access guard."""

from student_registry.session.context import (
    Notification,
    NotificationLevel,
    SessionContext,
)
from student_registry.session.exceptions import (
    NotAuthenticatedError,
    SessionError,
    SubmissionInFlightError,
)
from student_registry.session.guard import AccessGuard, GuardState
from student_registry.session.provider import SessionProvider
from student_registry.session.store import SessionStore

__all__ = [
    "AccessGuard",
    "GuardState",
    "NotAuthenticatedError",
    "Notification",
    "NotificationLevel",
    "SessionContext",
    "SessionError",
    "SessionProvider",
    "SessionStore",
    "SubmissionInFlightError",
]
