"""FastAPI application setup."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, Response

from student_registry.backend import BackendClient, BackendError
from student_registry.config import Settings, load_settings
from student_registry.session import (
    NotAuthenticatedError,
    SessionContext,
    SessionProvider,
    SessionStore,
)
from student_registry.web.dependencies import (
    close_backend,
    close_session_provider,
    close_session_store,
    init_backend,
    init_session_provider,
    init_session_store,
    session_store,
)
from student_registry.web.routes import auth, students
from student_registry.web.templating import configure_templates, redirect

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger("student_registry.web")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings

    # Startup
    backend = app.state.backend or BackendClient.from_config(settings.backend)
    init_backend(backend)
    init_session_store(SessionStore(idle_timeout=settings.app.session_idle_timeout))
    init_session_provider(SessionProvider(backend.auth))
    logger.info("Student Registry started (backend=%s)", settings.backend.url)

    yield
    # Shutdown
    close_session_provider()
    close_session_store()
    await close_backend()
    logger.info("Student Registry stopped")


def create_app(
    settings: Settings | None = None,
    backend: BackendClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. Loaded from the environment when omitted.
        backend: Backend client to use instead of one built from settings.
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title=settings.app.title,
        description="Student records backed by a hosted database",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )

    # Store config for lifespan manager
    app.state.settings = settings
    app.state.backend = backend
    configure_templates(settings.app)

    cookie_name = settings.app.session_cookie

    @app.middleware("http")
    async def session_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        store = session_store()
        session_id = request.cookies.get(cookie_name)
        request.state.session_context = store.get(session_id) or SessionContext()

        response = await call_next(request)

        # Routes may swap the context (sign-in, sign-out)
        context: SessionContext = request.state.session_context
        if context.needs_storage:
            store.save(context)
            if context.id != session_id:
                response.set_cookie(
                    cookie_name,
                    context.id,
                    httponly=True,
                    samesite="lax",
                    secure=settings.app.secure_cookies,
                )
        else:
            store.discard(context.id)
            if session_id:
                response.delete_cookie(
                    cookie_name, httponly=True, samesite="lax", secure=settings.app.secure_cookies
                )
        return response

    # Exception handlers
    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(
        _request: Request, _exc: NotAuthenticatedError
    ) -> Response:
        return redirect("/login")

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError) -> Response:
        logger.warning("Unhandled backend error on %s (%s): %s", request.url.path, exc.kind, exc.message)
        context = getattr(request.state, "session_context", None)
        if context is not None:
            context.notify_error("Something went wrong", exc.message)
        return redirect("/students")

    # Include routers
    app.include_router(auth.router)
    app.include_router(students.router)

    return app
