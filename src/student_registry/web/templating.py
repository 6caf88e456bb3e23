"""Jinja2 page rendering."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from fastapi import Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from student_registry.backend import ErrorKind

if TYPE_CHECKING:
    from student_registry.config import AppConfig

TEMPLATES_DIR = Path(__file__).parent / "templates"
DEFAULT_DATE_FORMAT = "%d/%m/%Y"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# HTTP status used when a page is re-rendered after a remote failure
ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION: 403,
    ErrorKind.NETWORK: 502,
    ErrorKind.UNKNOWN: 500,
}


def format_date(value: date | datetime | None, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a date for display; None renders as an empty string."""
    if value is None:
        return ""
    return value.strftime(fmt)


def configure_templates(app_config: AppConfig) -> None:
    """Apply application settings to the template environment."""
    templates.env.globals["app_title"] = app_config.title
    date_format = app_config.date_format
    templates.env.filters["format_date"] = lambda value: format_date(value, date_format)


templates.env.globals["app_title"] = "Student Registry"
templates.env.filters["format_date"] = format_date


def render(
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    """Render a page with the visitor's user and pending notifications."""
    session = request.state.session_context
    page: dict[str, Any] = {
        "user": session.user,
        "notifications": session.pop_notifications(),
    }
    if context:
        page.update(context)
    return templates.TemplateResponse(request, name, page, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    """Redirect after a form post or a failed fetch (303 See Other)."""
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)
