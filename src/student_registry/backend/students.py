"""StudentsTable - CRUD calls against the students collection of the data API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from student_registry.backend.exceptions import RecordNotFoundError
from student_registry.records.models import Student, StudentDraft

if TYPE_CHECKING:
    import httpx

    from student_registry.backend.client import BackendClient

logger = logging.getLogger("student_registry.backend.students")

SINGLE_OBJECT = "application/vnd.pgrst.object+json"
RETURN_REPRESENTATION = "return=representation"

# Columns matched by the list search
SEARCH_COLUMNS = ("name", "enrollment_id")


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally.

    The data API reads every `*` in a like pattern as `%` and offers no escape
    for it, so a literal `*` becomes a single-character `_` wildcard and the
    results are narrowed afterwards by `matches_search`.
    """
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "_")


def matches_search(student: Student, term: str) -> bool:
    """Whether the term occurs in the name or enrollment ID, ignoring case."""
    needle = term.casefold()
    return needle in student.name.casefold() or needle in student.enrollment_id.casefold()


def _quote(value: str) -> str:
    """Double-quote a value for a PostgREST logic tree."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def search_filter(term: str) -> str:
    """Build the `or` filter for a case-insensitive substring search.

    Args:
        term: Search term entered by the user.

    Returns:
        PostgREST logic tree, e.g. '(name.ilike."*an*",enrollment_id.ilike."*an*")'
    """
    pattern = _quote(f"*{_escape_like(term)}*")
    clauses = ",".join(f"{column}.ilike.{pattern}" for column in SEARCH_COLUMNS)
    return f"({clauses})"


class StudentsTable:
    """Data API access to student records.

    Visibility and ownership checks are enforced by the backend's row-level
    security policies; every call is made with the signed-in user's token.
    """

    def __init__(self, backend: BackendClient, table: str = "students") -> None:
        self._backend = backend
        self.table = table

    @property
    def url(self) -> str:
        return f"{self._backend.rest_url}/{self.table}"

    def _rows(self, response: httpx.Response) -> list[dict[str, Any]]:
        data: Any = response.json() if response.content else None
        if isinstance(data, list):
            return data
        return [data] if data else []

    async def list_students(self, token: str, search: str | None = None) -> list[Student]:
        """Get all visible students ordered by name.

        Args:
            token: User access token
            search: Optional term matched against name and enrollment ID

        Returns:
            List of Student objects
        """
        params = {"select": "*", "order": "name.asc"}
        term = (search or "").strip()
        if term:
            params["or"] = search_filter(term)

        logger.debug("Listing students (search=%r)", term)
        response = await self._backend.request("GET", self.url, token=token, params=params)
        students = [Student.from_row(row) for row in self._rows(response)]
        if "*" in term:
            students = [s for s in students if matches_search(s, term)]
        logger.debug("Found %d student(s)", len(students))
        return students

    async def get_student(self, token: str, student_id: str) -> Student:
        """Get one student by ID.

        Raises:
            RecordNotFoundError: If the record doesn't exist or isn't visible
        """
        response = await self._backend.request(
            "GET",
            self.url,
            token=token,
            params={"select": "*", "id": f"eq.{student_id}"},
            headers={"Accept": SINGLE_OBJECT},
        )
        rows = self._rows(response)
        if not rows:
            raise RecordNotFoundError(f"Student {student_id} not found")
        return Student.from_row(rows[0])

    async def insert_student(
        self, token: str, draft: StudentDraft, owner_id: str
    ) -> Student | None:
        """Insert a new student owned by the given user.

        Args:
            token: User access token
            draft: Validated values
            owner_id: ID of the signed-in user

        Returns:
            The created record, or None if the backend did not return it
        """
        payload = draft.to_payload()
        payload["owner_id"] = owner_id

        logger.info("Creating student %r for owner %s", draft.enrollment_id, owner_id)
        response = await self._backend.request(
            "POST",
            self.url,
            token=token,
            json=payload,
            headers={"Prefer": RETURN_REPRESENTATION},
        )
        rows = self._rows(response)
        return Student.from_row(rows[0]) if rows else None

    async def update_student(self, token: str, student_id: str, draft: StudentDraft) -> Student:
        """Overwrite all editable fields of a student.

        Raises:
            RecordNotFoundError: If no visible record was updated
        """
        logger.info("Updating student %s", student_id)
        response = await self._backend.request(
            "PATCH",
            self.url,
            token=token,
            params={"id": f"eq.{student_id}"},
            json=draft.to_payload(),
            headers={"Prefer": RETURN_REPRESENTATION},
        )
        rows = self._rows(response)
        if not rows:
            raise RecordNotFoundError(f"Student {student_id} not found")
        return Student.from_row(rows[0])

    async def delete_student(self, token: str, student_id: str) -> None:
        """Delete a student.

        Raises:
            RecordNotFoundError: If no visible record was deleted
        """
        logger.info("Deleting student %s", student_id)
        response = await self._backend.request(
            "DELETE",
            self.url,
            token=token,
            params={"id": f"eq.{student_id}"},
            headers={"Prefer": RETURN_REPRESENTATION},
        )
        if not self._rows(response):
            raise RecordNotFoundError(f"Student {student_id} not found")
        logger.info("Deleted student %s", student_id)
