"""BackendClient - shared HTTP plumbing for the hosted data and auth APIs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from student_registry.backend.auth import AuthClient
from student_registry.backend.exceptions import error_from_response, error_from_transport
from student_registry.backend.students import StudentsTable
from student_registry.logging import sanitize_for_log, truncate_output

if TYPE_CHECKING:
    from student_registry.config import BackendConfig

logger = logging.getLogger("student_registry.backend")


class BackendClient:
    """Client for a hosted Postgres + auth service (PostgREST / GoTrue conventions).

    Owns one ``httpx.AsyncClient`` shared by the ``auth`` and ``students``
    helpers. Requests are sent with the project API key and, when given, the
    signed-in user's access token so the backend can apply its row-level
    security policies.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        students_table: str = "students",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the backend client.

        Args:
            url: Project base URL, e.g. "https://xyz.supabase.co"
            api_key: Public (anon) API key of the project
            students_table: Name of the students collection
            timeout: Request timeout in seconds
            transport: Custom transport (for testing)
        """
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.auth: AuthClient = AuthClient(self)
        self.students: StudentsTable = StudentsTable(self, table=students_table)

    @classmethod
    def from_config(cls, config: BackendConfig) -> BackendClient:
        return cls(
            url=config.url,
            api_key=config.api_key,
            students_table=config.students_table,
            timeout=config.timeout,
        )

    @property
    def rest_url(self) -> str:
        return f"{self.url}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.url}/auth/v1"

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"apikey": self.api_key},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and normalize failures.

        Args:
            method: HTTP method
            url: Absolute URL
            token: User access token; the API key is used when absent
            headers: Extra headers
            **kwargs: Passed to httpx (params, json, ...)

        Returns:
            The successful response.

        Raises:
            BackendError: A subclass matching the failure kind.
        """
        request_headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }
        if headers:
            request_headers.update(headers)

        try:
            response = await self.client.request(method, url, headers=request_headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise error_from_transport(e) from e

        if response.is_error:
            error = error_from_response(response)
            logger.warning(
                "%s %s -> %d (%s): %s",
                method,
                url,
                response.status_code,
                error.kind,
                sanitize_for_log(truncate_output(response.text)),
            )
            raise error

        return response
