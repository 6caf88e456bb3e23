"""Custom exceptions for session handling."""


class SessionError(Exception):
    """Base exception for session errors."""


class NotAuthenticatedError(SessionError):
    """The session has no signed-in user."""


class SubmissionInFlightError(SessionError):
    """A submission of the same form is still being processed."""
