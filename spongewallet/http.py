"""Authenticated HTTP transport for the SpongeWallet API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from .config import DEFAULT_BASE_URL, REQUEST_TIMEOUT
from .exceptions import AuthenticationError, RateLimitError, SpongeApiError
from .models import ApiErrorBody
from .version import __version__

logger = logging.getLogger("spongewallet.http")

VERSION_HEADER = "Sponge-Version"


class _NoContent:
    """Marker returned for ``204 No Content`` responses."""

    _instance: Optional["_NoContent"] = None

    def __new__(cls) -> "_NoContent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_CONTENT"


NO_CONTENT = _NoContent()


class HttpClient:
    """Thin async wrapper around :class:`httpx.AsyncClient`.

    Every request carries the bearer API key, a JSON content type and the
    SDK version header. Non-2xx responses are raised as
    :class:`SpongeApiError`; response bodies are returned unvalidated, the
    calling API class owns validation.

    Usage::

        async with HttpClient("sponge_live_...") as http:
            agent = await http.get("/api/agents/me")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialise the transport.

        Args:
            api_key: Agent or master API key, sent as a bearer token.
            base_url: Base URL of the SpongeWallet API.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``.
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                VERSION_HEADER: __version__,
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_key(self) -> str:
        return self._api_key

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(self, path: str, params: Optional[Mapping[str, Optional[str]]] = None) -> Any:
        """GET ``path``. Query parameters whose value is ``None`` are omitted."""
        query: Optional[Dict[str, str]] = None
        if params:
            query = {key: value for key, value in params.items() if value is not None}
        return await self._request("GET", path, params=query)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self._request("POST", path, json=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self._request("PUT", path, json=body)

    async def delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send a request and return the parsed JSON body.

        Returns:
            The decoded JSON, or :data:`NO_CONTENT` for a 204 response.

        Raises:
            AuthenticationError: If the API key is rejected (401).
            RateLimitError: If rate limited (429).
            SpongeApiError: For all other non-2xx responses.
        """
        response = await self._client.request(method, path, json=json, params=params)
        logger.debug(f"{method} {path} -> {response.status_code}")

        if not response.is_success:
            raise _to_api_error(response)
        if response.status_code == 204:
            return NO_CONTENT
        return response.json()

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def _to_api_error(response: httpx.Response) -> SpongeApiError:
    body: Optional[ApiErrorBody] = None
    try:
        body = ApiErrorBody.model_validate(response.json())
    except (ValueError, ValidationError):
        # Unparseable body, fall back to the status line
        pass

    status = response.status_code
    error_code = body.error if body else "unknown_error"
    message = body.message if body else f"HTTP {status}: {response.reason_phrase}"

    if status == 401:
        return AuthenticationError(status, error_code, message)
    if status == 429:
        return RateLimitError(status, error_code, message)
    return SpongeApiError(status, error_code, message)
