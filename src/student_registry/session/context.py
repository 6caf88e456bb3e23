"""SessionContext - per-browser state shared by every page of one visitor."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import uuid4

from student_registry.session.exceptions import SubmissionInFlightError

if TYPE_CHECKING:
    from student_registry.backend.models import AuthSession, User

logger = logging.getLogger("student_registry.session")

SessionListener = Callable[["AuthSession | None"], None]


class NotificationLevel(StrEnum):
    """Notification severity."""

    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A transient message shown once on the next rendered page."""

    title: str
    message: str = ""
    level: NotificationLevel = NotificationLevel.SUCCESS


class SessionContext:
    """Observable session state for one browser.

    The signed-in session is read-only here; it is written only by
    ``SessionProvider`` (sign-in, sign-out, refresh), which notifies every
    subscribed listener. The context also holds the visitor's pending
    notifications, per-form in-flight flags and request generation counters.
    """

    def __init__(self, id: str | None = None) -> None:
        self.id = id if id is not None else str(uuid4())
        self._auth: AuthSession | None = None
        self._listeners: list[SessionListener] = []
        self._notifications: list[Notification] = []
        self._generations: dict[str, int] = {}
        self._in_flight: set[str] = set()

    def __repr__(self) -> str:
        return f"<SessionContext(id={self.id!r}, authenticated={self.is_authenticated})>"

    # Session (read-only outside SessionProvider)

    @property
    def auth(self) -> AuthSession | None:
        return self._auth

    @property
    def user(self) -> User | None:
        return self._auth.user if self._auth is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self._auth is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener called with the new session whenever it changes.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _publish(self, auth: AuthSession | None) -> None:
        """Replace the session and notify listeners. Called by SessionProvider only."""
        self._auth = auth
        for listener in list(self._listeners):
            listener(auth)

    # Notifications

    def notify(
        self,
        title: str,
        message: str = "",
        level: NotificationLevel = NotificationLevel.SUCCESS,
    ) -> None:
        """Queue a notification for the next rendered page."""
        self._notifications.append(Notification(title=title, message=message, level=level))

    def notify_error(self, title: str, message: str = "") -> None:
        self.notify(title, message, NotificationLevel.ERROR)

    @property
    def has_notifications(self) -> bool:
        return bool(self._notifications)

    @property
    def needs_storage(self) -> bool:
        """Whether the context carries state a later request must see."""
        return self.is_authenticated or self.has_notifications

    def pop_notifications(self) -> list[Notification]:
        """Take all pending notifications, leaving the queue empty."""
        pending, self._notifications = self._notifications, []
        return pending

    # Request generations

    def begin_request(self, key: str) -> int:
        """Start a new fetch for a view and return its generation token.

        A later call with the same key supersedes every earlier token.
        """
        token = self._generations.get(key, 0) + 1
        self._generations[key] = token
        return token

    def is_current(self, key: str, token: int) -> bool:
        """Whether the token still belongs to the latest fetch for the view."""
        return self._generations.get(key) == token

    # In-flight submissions

    def is_submitting(self, key: str) -> bool:
        return key in self._in_flight

    @contextmanager
    def submission(self, key: str) -> Iterator[None]:
        """Mark a form as in flight for the duration of the block.

        Raises:
            SubmissionInFlightError: If the same form is already in flight
        """
        if key in self._in_flight:
            raise SubmissionInFlightError(f"Submission already in progress: {key}")
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)
