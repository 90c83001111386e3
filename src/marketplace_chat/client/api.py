"""Thin REST client for the chat HTTP endpoints."""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class ChatApiError(Exception):
    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ChatApi:
    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ChatApi:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers=self._headers(),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}", "Accept": "application/json"}

    async def fetch_history(self, counterparty_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/chat/{quote(counterparty_id, safe='')}")

    async def mark_read(self, counterparty_id: str) -> int:
        body = await self._request("PUT", f"/api/chat/{quote(counterparty_id, safe='')}/read")
        return int(body.get("updated", 0))

    async def list_active(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/chat/active")

    async def _request(self, method: str, path: str) -> Any:
        if not self._client:
            raise ChatApiError("Client not initialized")
        try:
            resp = await self._client.request(method, path)
        except httpx.HTTPError as exc:
            raise ChatApiError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            try:
                payload = resp.json()
            except ValueError:
                payload = None
            detail = payload.get("detail", resp.text) if isinstance(payload, dict) else resp.text
            raise ChatApiError(str(detail), resp.status_code)
        return resp.json()
