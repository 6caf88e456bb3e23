"""Records - student record models and form validation."""

from student_registry.records.exceptions import (
    FieldError,
    RecordValidationError,
    StudentValidationError,
)
from student_registry.records.models import (
    EDITABLE_FIELDS,
    OPTIONAL_FIELDS,
    Student,
    StudentDraft,
)
from student_registry.records.validation import (
    LoginForm,
    StudentForm,
    field_errors,
    validate_student,
)

__all__ = [
    "EDITABLE_FIELDS",
    "OPTIONAL_FIELDS",
    "FieldError",
    "LoginForm",
    "RecordValidationError",
    "Student",
    "StudentDraft",
    "StudentForm",
    "StudentValidationError",
    "field_errors",
    "validate_student",
]
