"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends, Request

from student_registry.backend import AuthSession, BackendClient, StudentsTable
from student_registry.session import (
    AccessGuard,
    NotAuthenticatedError,
    SessionContext,
    SessionProvider,
    SessionStore,
)


# Global BackendClient instance (initialized on app startup)
_backend: BackendClient | None = None


def init_backend(backend: BackendClient) -> BackendClient:
    """Initialize the global BackendClient instance."""
    global _backend  # noqa: PLW0603
    _backend = backend
    return _backend


async def close_backend() -> None:
    """Close the global BackendClient instance."""
    global _backend  # noqa: PLW0603
    if _backend is not None:
        await _backend.aclose()
        _backend = None


def get_backend() -> Generator[BackendClient, None, None]:
    """Dependency that provides the BackendClient instance."""
    if _backend is None:
        raise RuntimeError("BackendClient not initialized. Call init_backend() first.")
    yield _backend


# Type alias for dependency injection
BackendDep = Annotated[BackendClient, Depends(get_backend)]


def get_students(backend: BackendDep) -> StudentsTable:
    """Dependency that provides the students collection."""
    return backend.students


# Type alias for dependency injection
StudentsDep = Annotated[StudentsTable, Depends(get_students)]

# Global SessionStore instance
_session_store: SessionStore | None = None


def init_session_store(store: SessionStore | None = None) -> SessionStore:
    """Initialize the global SessionStore instance."""
    global _session_store  # noqa: PLW0603
    _session_store = store if store is not None else SessionStore()
    return _session_store


def close_session_store() -> None:
    """Drop all sessions held by the global SessionStore."""
    global _session_store  # noqa: PLW0603
    if _session_store is not None:
        _session_store.clear()
        _session_store = None


def session_store() -> SessionStore:
    """Get the global SessionStore (used by the session middleware)."""
    if _session_store is None:
        raise RuntimeError("SessionStore not initialized. Call init_session_store() first.")
    return _session_store


# Global SessionProvider instance
_session_provider: SessionProvider | None = None


def init_session_provider(provider: SessionProvider) -> None:
    """Initialize the global SessionProvider instance."""
    global _session_provider  # noqa: PLW0603
    _session_provider = provider


def close_session_provider() -> None:
    """Close the global SessionProvider instance."""
    global _session_provider  # noqa: PLW0603
    _session_provider = None


def get_session_provider() -> Generator[SessionProvider, None, None]:
    """Dependency that provides the SessionProvider instance."""
    if _session_provider is None:
        raise RuntimeError("SessionProvider not initialized. Call init_session_provider() first.")
    yield _session_provider


# Type alias for dependency injection
SessionProviderDep = Annotated[SessionProvider, Depends(get_session_provider)]


def get_session_context(request: Request) -> SessionContext:
    """Dependency that provides the visitor's SessionContext."""
    context: SessionContext | None = getattr(request.state, "session_context", None)
    if context is None:
        raise RuntimeError("Session middleware not installed")
    return context


# Type alias for dependency injection
SessionContextDep = Annotated[SessionContext, Depends(get_session_context)]


def replace_session_context(request: Request, context: SessionContext) -> None:
    """Give the visitor a new context and retire the current one.

    The old cookie value stops working; the session middleware issues a
    cookie for the new context.
    """
    session_store().discard(get_session_context(request).id)
    request.state.session_context = context


async def require_session(
    context: SessionContextDep, provider: SessionProviderDep
) -> AsyncGenerator[AccessGuard, None]:
    """Guard a data page: resolve the session before the route body runs.

    The guard stays subscribed to the session for the whole request, so a
    sign-out published meanwhile is visible through ``guard.allowed``.

    Raises:
        NotAuthenticatedError: If no usable session exists (redirects to login)
    """
    guard = AccessGuard(context, provider)
    try:
        await guard.check()
        if not guard.allowed:
            raise NotAuthenticatedError("Sign-in required")
        yield guard
    finally:
        guard.close()


# Type alias for dependency injection
GuardDep = Annotated[AccessGuard, Depends(require_session)]


def current_auth(context: SessionContext) -> AuthSession:
    """Get the signed-in session of a guarded request.

    Raises:
        NotAuthenticatedError: If the session was cleared meanwhile
    """
    auth = context.auth
    if auth is None:
        raise NotAuthenticatedError("Sign-in required")
    return auth
