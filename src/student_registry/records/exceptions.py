"""Custom exceptions for record validation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A validation failure attached to a single form field."""

    field: str
    message: str


class RecordValidationError(Exception):
    """Base exception for record validation errors."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))

    def by_field(self) -> dict[str, str]:
        """Map each failing field to its message."""
        return {e.field: e.message for e in self.errors}


class StudentValidationError(RecordValidationError):
    """Student form values failed validation."""
