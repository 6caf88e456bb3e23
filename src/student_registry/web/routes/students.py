"""Student pages: list, detail, create, edit and delete."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request, Response, status

from student_registry.backend import BackendError, ErrorKind
from student_registry.records import (
    EDITABLE_FIELDS,
    Student,
    StudentValidationError,
    validate_student,
)
from student_registry.session import SessionContext, SubmissionInFlightError
from student_registry.web.dependencies import (
    GuardDep,
    SessionContextDep,
    StudentsDep,
    current_auth,
)
from student_registry.web.templating import ERROR_STATUS, redirect, render

logger = logging.getLogger("student_registry.web.students")

router = APIRouter(prefix="/students", tags=["students"])

# Session keys for request generations and in-flight forms
LIST_VIEW = "students.list"
DETAIL_VIEW = "students.detail"
EDIT_VIEW = "students.edit"
CREATE_FORM = "students.create"


def record_view(view: str, student_id: str) -> str:
    """Generation key for one record shown by one view."""
    return f"{view}:{student_id}"


def _update_form(student_id: str) -> str:
    return f"students.update:{student_id}"


def _delete_action(student_id: str) -> str:
    return f"students.delete:{student_id}"


def _stale() -> Response:
    """Response for a fetch superseded by a newer one for the same view."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _form_values(request: Request) -> dict[str, str]:
    form = await request.form()
    return {field: str(form.get(field) or "") for field in EDITABLE_FIELDS}


def _render_form(
    request: Request,
    *,
    values: dict[str, str],
    errors: dict[str, str] | None = None,
    student_id: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    context: dict[str, Any] = {
        "values": values,
        "errors": errors or {},
        "student_id": student_id,
    }
    if student_id is None:
        context.update(title="New Student", action="/students/new", cancel_url="/students")
    else:
        context.update(
            title="Edit Student",
            action=f"/students/{student_id}/edit",
            cancel_url=f"/students/{student_id}",
        )
    return render(request, "students/form.html", context, status_code=status_code)


def _notify_failure(context: SessionContext, title: str, error: BackendError) -> None:
    logger.info("%s (%s): %s", title, error.kind, error.message)
    context.notify_error(title, error.message)


@router.get("")
async def list_students(
    request: Request,
    context: SessionContextDep,
    guard: GuardDep,
    students: StudentsDep,
    q: str = "",
    partial: bool = False,
) -> Response:
    """List visible students ordered by name, optionally filtered by a search term.

    With `partial`, only the results fragment is rendered for the live search;
    a fragment overtaken by a newer search answers 204 instead.
    """
    term = q.strip()
    token = context.begin_request(LIST_VIEW) if partial else None

    records: list[Student] = []
    try:
        records = await students.list_students(current_auth(context).access_token, term or None)
    except BackendError as e:
        _notify_failure(context, "Could not load students", e)

    if token is not None and not context.is_current(LIST_VIEW, token):
        logger.debug("Discarding stale student list (search=%r)", term)
        return _stale()
    if not guard.allowed:
        return redirect("/login")

    template = "students/_results.html" if partial else "students/list.html"
    return render(request, template, {"students": records, "search": term, "partial": partial})


@router.get("/new")
async def new_student(request: Request, guard: GuardDep) -> Response:
    """Empty create form."""
    return _render_form(request, values=dict.fromkeys(EDITABLE_FIELDS, ""))


@router.post("/new")
async def create_student(
    request: Request,
    context: SessionContextDep,
    guard: GuardDep,
    students: StudentsDep,
) -> Response:
    """Validate and insert a new student owned by the signed-in user."""
    values = await _form_values(request)
    try:
        draft = validate_student(values)
    except StudentValidationError as e:
        return _render_form(
            request, values=values, errors=e.by_field(), status_code=422
        )

    auth = current_auth(context)
    try:
        with context.submission(CREATE_FORM):
            await students.insert_student(auth.access_token, draft, owner_id=auth.user.id)
    except SubmissionInFlightError:
        context.notify_error("Please wait", "This student is already being saved")
        return _render_form(request, values=values, status_code=status.HTTP_409_CONFLICT)
    except BackendError as e:
        _notify_failure(context, "Could not create student", e)
        return _render_form(request, values=values, status_code=ERROR_STATUS[e.kind])

    context.notify("Student created", "Student registered successfully!")
    return redirect("/students")


@router.get("/{student_id}")
async def student_detail(
    request: Request,
    student_id: str,
    context: SessionContextDep,
    guard: GuardDep,
    students: StudentsDep,
    confirm: str | None = None,
) -> Response:
    """Show one student.

    The delete dialog is part of the page and opens in the browser;
    `?confirm=delete` renders it already open for clients without scripts.
    """
    view = record_view(DETAIL_VIEW, student_id)
    token = context.begin_request(view)
    try:
        student = await students.get_student(current_auth(context).access_token, student_id)
    except BackendError as e:
        _notify_failure(context, "Could not load student", e)
        return redirect("/students")

    if not context.is_current(view, token):
        logger.debug("Discarding stale student %s", student_id)
        return _stale()
    if not guard.allowed:
        return redirect("/login")

    return render(
        request,
        "students/detail.html",
        {"student": student, "confirm_delete": confirm == "delete"},
    )


@router.post("/{student_id}/delete")
async def delete_student(
    student_id: str,
    context: SessionContextDep,
    guard: GuardDep,
    students: StudentsDep,
) -> Response:
    """Delete a student after the user confirmed in the dialog."""
    try:
        with context.submission(_delete_action(student_id)):
            await students.delete_student(current_auth(context).access_token, student_id)
    except SubmissionInFlightError:
        context.notify_error("Please wait", "This student is already being deleted")
        return redirect(f"/students/{student_id}")
    except BackendError as e:
        _notify_failure(context, "Could not delete student", e)
        if e.kind is ErrorKind.NOT_FOUND:
            return redirect("/students")
        return redirect(f"/students/{student_id}")

    context.notify("Student deleted", "Student removed successfully")
    return redirect("/students")


@router.get("/{student_id}/edit")
async def edit_student(
    request: Request,
    student_id: str,
    context: SessionContextDep,
    guard: GuardDep,
    students: StudentsDep,
) -> Response:
    """Edit form pre-populated with the stored values."""
    view = record_view(EDIT_VIEW, student_id)
    token = context.begin_request(view)
    try:
        student = await students.get_student(current_auth(context).access_token, student_id)
    except BackendError as e:
        _notify_failure(context, "Could not load student", e)
        return redirect("/students")

    if not context.is_current(view, token):
        logger.debug("Discarding stale edit form for student %s", student_id)
        return _stale()
    if not guard.allowed:
        return redirect("/login")

    return _render_form(request, values=student.to_form_values(), student_id=student_id)


@router.post("/{student_id}/edit")
async def update_student(
    request: Request,
    student_id: str,
    context: SessionContextDep,
    guard: GuardDep,
    students: StudentsDep,
) -> Response:
    """Validate and overwrite every editable field of a student."""
    values = await _form_values(request)
    try:
        draft = validate_student(values)
    except StudentValidationError as e:
        return _render_form(
            request, values=values, errors=e.by_field(), student_id=student_id, status_code=422
        )

    try:
        with context.submission(_update_form(student_id)):
            await students.update_student(current_auth(context).access_token, student_id, draft)
    except SubmissionInFlightError:
        context.notify_error("Please wait", "This student is already being saved")
        return _render_form(
            request, values=values, student_id=student_id, status_code=status.HTTP_409_CONFLICT
        )
    except BackendError as e:
        _notify_failure(context, "Could not update student", e)
        if e.kind is ErrorKind.NOT_FOUND:
            return redirect("/students")
        return _render_form(
            request, values=values, student_id=student_id, status_code=ERROR_STATUS[e.kind]
        )

    context.notify("Student updated", "Changes saved successfully!")
    return redirect(f"/students/{student_id}")
