"""Validation schemas for the student and login forms.

Both schemas are pydantic models. ``validate_student`` wraps the student schema
so the create and edit pages get a normalized ``StudentDraft`` or a list of
field errors with user-facing messages.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from student_registry.records.exceptions import FieldError, StudentValidationError
from student_registry.records.models import StudentDraft

NAME_MIN, NAME_MAX = 2, 80
ENROLLMENT_MIN, ENROLLMENT_MAX = 3, 20
PASSWORD_MIN = 8

# (field, pydantic error type) -> message
_MESSAGES = {
    ("name", "string_too_short"): f"Name must be at least {NAME_MIN} characters",
    ("name", "string_too_long"): f"Name must be at most {NAME_MAX} characters",
    ("enrollment_id", "string_too_short"): (
        f"Enrollment ID must be at least {ENROLLMENT_MIN} characters"
    ),
    ("enrollment_id", "string_too_long"): (
        f"Enrollment ID must be at most {ENROLLMENT_MAX} characters"
    ),
    ("password", "string_too_short"): f"Password must be at least {PASSWORD_MIN} characters",
}

# Used when no specific message exists for the error type
_FALLBACK_MESSAGES = {
    "name": "Name is required",
    "enrollment_id": "Enrollment ID is required",
    "birth_date": "Invalid birth date",
    "email": "Invalid email address",
    "phone": "Invalid phone",
    "class_name": "Invalid class",
    "password": "Password is required",
}


class StudentForm(BaseModel):
    """Candidate student record submitted from the create or edit form."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(min_length=NAME_MIN, max_length=NAME_MAX)
    enrollment_id: str = Field(min_length=ENROLLMENT_MIN, max_length=ENROLLMENT_MAX)
    birth_date: date
    email: EmailStr | None = None
    phone: str | None = None
    class_name: str | None = None

    @field_validator("email", "phone", "class_name", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Empty optional inputs mean "no value"."""
        if isinstance(value, str):
            return value.strip() or None
        return value

    def to_draft(self) -> StudentDraft:
        return StudentDraft(
            name=self.name,
            enrollment_id=self.enrollment_id,
            birth_date=self.birth_date,
            email=str(self.email) if self.email is not None else None,
            phone=self.phone,
            class_name=self.class_name,
        )


class LoginForm(BaseModel):
    """Credentials submitted from the login page."""

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN)


def message_for(field: str, error_type: str) -> str:
    """Get the user-facing message for a pydantic error on a field."""
    return _MESSAGES.get((field, error_type)) or _FALLBACK_MESSAGES.get(field, "Invalid value")


def field_errors(exc: ValidationError) -> list[FieldError]:
    """Convert a pydantic ValidationError into one FieldError per failing field.

    Errors keep pydantic's order, which follows field declaration order.
    """
    errors: list[FieldError] = []
    seen: set[str] = set()
    for error in exc.errors():
        loc = error.get("loc") or ("__root__",)
        field = str(loc[0])
        if field in seen:
            continue
        seen.add(field)
        errors.append(FieldError(field=field, message=message_for(field, error["type"])))
    return errors


def validate_student(data: Mapping[str, Any]) -> StudentDraft:
    """Validate and normalize a candidate student record.

    Args:
        data: Raw form values keyed by field name. Unknown keys are ignored.

    Returns:
        Normalized draft with trimmed values and absent optional fields as None.

    Raises:
        StudentValidationError: If any field fails validation.
    """
    try:
        form = StudentForm.model_validate(dict(data))
    except ValidationError as e:
        raise StudentValidationError(field_errors(e)) from e
    return form.to_draft()
