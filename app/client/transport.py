"""HTTP transport for the games listing, built on ``httpx.AsyncClient``."""
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from app.config import settings
from app.errors import FetchError
from app.query.compiler import QuerySpec
from app.query.envelope import ResultEnvelope

logger = logging.getLogger(__name__)

LIST_PATH = "/api/v1/games"


class GamesClient:
    """
    Fetches list pages from the catalog API.

    Pass an existing ``httpx.AsyncClient`` to share a connection pool (or
    to wire an ``ASGITransport`` in tests); otherwise one is created from
    ``settings.API_BASE_URL`` and closed by ``aclose``.
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS,
        )

    async def __aenter__(self) -> "GamesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def fetch_page(self, spec: QuerySpec) -> ResultEnvelope:
        """GET one list page for *spec*; raises ``FetchError`` on any failure."""
        try:
            resp = await self._http.get(LIST_PATH, params=spec.to_params())
        except httpx.HTTPError as exc:
            raise FetchError(f"Request failed: {exc}") from exc

        body = _json_or_none(resp)
        if resp.status_code != 200:
            message = (body or {}).get("message") or resp.reason_phrase
            raise FetchError(message, status_code=resp.status_code)
        if not body or body.get("success") is not True:
            message = (body or {}).get("message") or "Malformed list response"
            raise FetchError(message, status_code=resp.status_code)

        try:
            return ResultEnvelope.model_validate(body)
        except ValidationError as exc:
            raise FetchError("Malformed list response", status_code=resp.status_code) from exc


def _json_or_none(resp: httpx.Response) -> dict[str, Any] | None:
    try:
        body = resp.json()
    except ValueError:
        logger.debug("Non-JSON response body (status %d)", resp.status_code)
        return None
    return body if isinstance(body, dict) else None
