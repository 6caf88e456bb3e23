"""Login and logout pages."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response, status
from pydantic import ValidationError

from student_registry.backend import BackendError
from student_registry.records import LoginForm, field_errors
from student_registry.session import SessionContext, SubmissionInFlightError
from student_registry.web.dependencies import (
    SessionContextDep,
    SessionProviderDep,
    replace_session_context,
)
from student_registry.web.templating import ERROR_STATUS, redirect, render

logger = logging.getLogger("student_registry.web.auth")

router = APIRouter(tags=["auth"])

LOGIN_FORM = "auth.login"

# Remote messages replaced by friendlier text
LOGIN_MESSAGES = {
    "Invalid login credentials": "Incorrect email or password",
}


def login_failure_message(error: BackendError) -> str:
    return LOGIN_MESSAGES.get(error.message, error.message)


@router.get("/")
async def home() -> Response:
    return redirect("/students")


@router.get("/login")
async def login_page(
    request: Request, context: SessionContextDep, provider: SessionProviderDep
) -> Response:
    """Sign-in form; signed-in visitors go straight to the student list."""
    if await provider.current_session(context) is not None:
        return redirect("/students")
    return render(request, "login.html", {"email": ""})


@router.post("/login")
async def login(
    request: Request, context: SessionContextDep, provider: SessionProviderDep
) -> Response:
    """Validate credentials and sign in."""
    form = await request.form()
    email = str(form.get("email") or "")
    password = str(form.get("password") or "")

    try:
        credentials = LoginForm.model_validate({"email": email, "password": password})
    except ValidationError as e:
        context.notify_error("Invalid data", field_errors(e)[0].message)
        return render(request, "login.html", {"email": email}, status_code=422)

    # Signed-in sessions always get a new id
    signed_in = SessionContext()
    try:
        with context.submission(LOGIN_FORM):
            await provider.sign_in(signed_in, str(credentials.email), credentials.password)
    except SubmissionInFlightError:
        context.notify_error("Please wait", "Signing in is already in progress")
        return render(
            request, "login.html", {"email": email}, status_code=status.HTTP_409_CONFLICT
        )
    except BackendError as e:
        logger.info("Sign-in failed for %s (%s): %s", email, e.kind, e.message)
        context.notify_error("Could not sign in", login_failure_message(e))
        return render(request, "login.html", {"email": email}, status_code=ERROR_STATUS[e.kind])

    replace_session_context(request, signed_in)
    signed_in.notify("Signed in", "Welcome back!")
    return redirect("/students")


@router.post("/logout")
async def logout(
    request: Request, context: SessionContextDep, provider: SessionProviderDep
) -> Response:
    """Sign out, retire the session id and return to the login page."""
    await provider.sign_out(context)
    signed_out = SessionContext()
    replace_session_context(request, signed_out)
    signed_out.notify("Signed out")
    return redirect("/login")
