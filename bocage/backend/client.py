"""
Backend store client for the campaign's hosted Postgres (Supabase REST).

Reads the prospect and interaction tables and inserts interactions. Rows are
mapped to the domain models here, so nothing above this layer sees backend
column names.
"""

import logging
from typing import Callable, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import INTERACTION_COLUMNS, INTERACTIONS_TABLE, PROSPECT_COLUMNS, PROSPECTS_TABLE
from ..models import Interaction, InteractionKind, Prospect

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Base exception for backend store errors."""
    pass


class AuthenticationError(BackendError):
    """Missing, invalid or expired credentials."""
    pass


class RateLimitError(BackendError):
    """Backend rate limit exceeded."""
    pass


class BackendClient:
    """
    Async client for the prospects/actions tables.

    Usage:
        async with BackendClient(url, anon_key) as client:
            prospects = await client.fetch_prospects(limit=500)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = 30,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the backend client.

        Args:
            base_url: Project URL (e.g. https://xyz.supabase.co)
            api_key: Public (anon) API key
            timeout: Request timeout in seconds
            token_provider: Returns the signed-in user's access token, if any
            transport: Custom httpx transport (tests)
        """
        if not base_url or not api_key:
            raise AuthenticationError(
                "Backend not configured. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
            )

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.token_provider = token_provider

        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            timeout=self.timeout,
            transport=transport,
        )
        logger.debug("Backend client initialized (%s)", self.base_url)

    def _headers(self) -> dict:
        token = self.token_provider() if self.token_provider else None
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }

    async def fetch_prospects(self, limit: int = 500) -> list[Prospect]:
        """All prospects, best relevance first, at most ``limit`` rows."""
        params = {
            "select": ",".join(PROSPECT_COLUMNS),
            "order": "score_pertinence.desc",
            "limit": str(limit),
        }
        rows = await self._select(PROSPECTS_TABLE, params)
        return [Prospect.from_row(row) for row in rows]

    async def fetch_interactions(self, limit: int = 1000) -> list[Interaction]:
        """Most recent interactions first (created_at desc, id desc)."""
        params = {
            "select": ",".join(INTERACTION_COLUMNS),
            "order": "created_at.desc,id.desc",
            "limit": str(limit),
        }
        rows = await self._select(INTERACTIONS_TABLE, params)
        return [Interaction.from_row(row) for row in rows]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    async def insert_interaction(
        self,
        prospect_id: int,
        kind: InteractionKind,
        notes: Optional[str],
        created_by: str,
    ) -> Interaction:
        """Insert one interaction and return the stored row."""
        payload = {
            "prospect_id": prospect_id,
            "type": kind.backend_value,
            "notes": notes,
            "created_by": created_by,
        }
        headers = self._headers()
        headers["Prefer"] = "return=representation"

        logger.info("Recording %s for prospect %s", kind.value, prospect_id)
        response = await self._send(
            "POST",
            f"/{INTERACTIONS_TABLE}",
            params={"select": ",".join(INTERACTION_COLUMNS)},
            json=payload,
            headers=headers,
        )
        self._handle_errors(response)

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(f"Insert returned invalid JSON: {e}") from e

        # Row-level security can hide the inserted row
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            raise BackendError("Insert returned no row")

        try:
            return Interaction.from_row(data)
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Insert returned an unreadable row: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    async def _select(self, table: str, params: dict) -> list[dict]:
        response = await self._send("GET", f"/{table}", params=params, headers=self._headers())
        self._handle_errors(response)

        rows = response.json()
        if not isinstance(rows, list):
            raise BackendError(f"Unexpected response for {table}: {type(rows).__name__}")

        logger.debug("Fetched %d rows from %s", len(rows), table)
        return rows

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"Request to {url} failed: {e}") from e

    def _handle_errors(self, response: httpx.Response) -> None:
        """Handle backend error responses."""
        if response.status_code in (401, 403):
            raise AuthenticationError(self._error_message(response) or "Not authorised")
        elif response.status_code == 429:
            raise RateLimitError("Backend rate limit exceeded")
        elif response.status_code >= 500:
            raise BackendError(f"Backend server error: {response.status_code}")
        elif response.status_code >= 400:
            raise BackendError(f"Backend error: {self._error_message(response)}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error_data = response.json()
        except ValueError:
            return response.text
        if isinstance(error_data, dict):
            return error_data.get("message") or error_data.get("error_description") or response.text
        return response.text

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
