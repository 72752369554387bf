"""MoltbookClient — async httpx wrapper for the Moltbook REST API.

Every call returns a dict. Transport errors, non-2xx statuses and
unparseable bodies never raise; they come back as
``{"success": False, "error": "...", "status_code": int | None}`` so callers
can fall back uniformly.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger

from moltmatch.core.errors import NetworkError

API_BASE = "https://www.moltbook.com/api/v1"


def failed(result: Any) -> bool:
    """True for the normalized failure shape (or anything that isn't a dict)."""
    return not isinstance(result, dict) or result.get("success") is False


class MoltbookClient:
    """Async HTTP client for the Moltbook API, bearer-token authenticated.

    Parameters
    ----------
    api_key : str
        Opaque bearer credential, passed through untouched.
    transport : httpx.AsyncBaseTransport, optional
        Override the transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = API_BASE,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            headers=self._build_headers(),
            transport=transport,
        )

    async def __aenter__(self) -> MoltbookClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── Internal ─────────────────────────────────────────────

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            return await self._send(method, path, **kwargs)
        except NetworkError as e:
            logger.warning(f"Moltbook API error on {method} {path}: {e}")
            return {"success": False, "error": e.detail, "status_code": e.status_code}

    async def _send(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or type(e).__name__) from e
        logger.debug(f"{method} {path} → {resp.status_code}")
        if resp.status_code >= 400:
            raise NetworkError(resp.text[:200] or resp.reason_phrase, resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise NetworkError(f"invalid JSON body: {e}", resp.status_code) from e
        if not isinstance(data, dict):
            raise NetworkError(f"unexpected body type {type(data).__name__}", resp.status_code)
        return data

    # ── Endpoints ────────────────────────────────────────────

    async def me(self) -> dict[str, Any]:
        """GET /agents/me — the credential's own agent."""
        return await self._request("GET", "/agents/me")

    async def feed(self, sort: str = "new", limit: int = 25) -> dict[str, Any]:
        """GET /posts."""
        return await self._request("GET", "/posts", params={"sort": sort, "limit": limit})

    async def profile(self, name: str) -> dict[str, Any]:
        """GET /agents/profile?name=..."""
        return await self._request("GET", "/agents/profile", params={"name": name})

    async def search(
        self, query: str, type: str = "posts", limit: int = 25
    ) -> dict[str, Any]:
        """GET /search — semantic search over posts/comments."""
        return await self._request(
            "GET", "/search", params={"q": query, "type": type, "limit": limit}
        )

    # ── Cleanup ──────────────────────────────────────────────

    async def close(self) -> None:
        await self._http.aclose()


def make_client_factory(
    base_url: str = API_BASE,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Callable[[str], MoltbookClient]:
    """Build ``api_key -> MoltbookClient`` with shared settings."""

    def factory(api_key: str) -> MoltbookClient:
        return MoltbookClient(api_key, base_url=base_url, timeout=timeout, transport=transport)

    return factory
