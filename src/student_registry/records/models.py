"""Data models for student records."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

from pydantic import TypeAdapter

_DATE = TypeAdapter(date)
_DATETIME = TypeAdapter(datetime)

# Fields the user may edit; owner and identifier are never resubmitted.
EDITABLE_FIELDS = ("name", "enrollment_id", "birth_date", "email", "phone", "class_name")
OPTIONAL_FIELDS = ("email", "phone", "class_name")


@dataclass(frozen=True)
class Student:
    """A student record as stored by the backend."""

    id: str
    name: str
    enrollment_id: str
    birth_date: date
    owner_id: str | None = None
    created_at: datetime | None = None
    email: str | None = None
    phone: str | None = None
    class_name: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Student:
        """Build a Student from a JSON row returned by the data API."""
        created_at = row.get("created_at")
        return cls(
            id=str(row["id"]),
            name=row["name"],
            enrollment_id=row["enrollment_id"],
            birth_date=_DATE.validate_python(row["birth_date"]),
            owner_id=row.get("owner_id"),
            created_at=_DATETIME.validate_python(created_at) if created_at else None,
            email=row.get("email") or None,
            phone=row.get("phone") or None,
            class_name=row.get("class_name") or None,
        )

    def to_form_values(self) -> dict[str, str]:
        """Values used to pre-populate the edit form; absent fields become ''."""
        return {
            "name": self.name,
            "enrollment_id": self.enrollment_id,
            "birth_date": self.birth_date.isoformat(),
            "email": self.email or "",
            "phone": self.phone or "",
            "class_name": self.class_name or "",
        }


@dataclass(frozen=True)
class StudentDraft:
    """Normalized, validated values for an insert or update.

    Optional fields are either a non-empty trimmed string or None.
    """

    name: str
    enrollment_id: str
    birth_date: date
    email: str | None = None
    phone: str | None = None
    class_name: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the data API. Absent fields are sent as null."""
        payload = asdict(self)
        payload["birth_date"] = self.birth_date.isoformat()
        return payload

    @classmethod
    def from_student(cls, student: Student) -> StudentDraft:
        return cls(**{name: getattr(student, name) for name in EDITABLE_FIELDS})
