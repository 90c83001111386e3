from __future__ import annotations

import httpx
import pytest

from marketplace_chat.client.api import ChatApi, ChatApiError


def _transport(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/api/chat/active":
            return httpx.Response(200, json=[{"counterpartyId": "v-1"}])
        if request.method == "PUT":
            return httpx.Response(200, json={"updated": 3})
        if request.url.path == "/api/chat/missing":
            return httpx.Response(403, json={"detail": "Not a participant of this conversation"})
        return httpx.Response(200, json=[{"id": "m-1"}])

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_requests_carry_bearer_token():
    seen: list[httpx.Request] = []
    async with ChatApi("http://chat.test/", "tok", transport=_transport(seen)) as api:
        history = await api.fetch_history("v-1")

    assert history == [{"id": "m-1"}]
    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert str(seen[0].url) == "http://chat.test/api/chat/v-1"


@pytest.mark.asyncio
async def test_mark_read_and_active_list():
    seen: list[httpx.Request] = []
    async with ChatApi("http://chat.test", "tok", transport=_transport(seen)) as api:
        assert await api.mark_read("v-1") == 3
        assert await api.list_active() == [{"counterpartyId": "v-1"}]

    assert [r.method for r in seen] == ["PUT", "GET"]
    assert seen[0].url.path == "/api/chat/v-1/read"


@pytest.mark.asyncio
async def test_error_status_raises_with_detail():
    async with ChatApi("http://chat.test", "tok", transport=_transport([])) as api:
        with pytest.raises(ChatApiError) as info:
            await api.fetch_history("missing")

    assert info.value.status_code == 403
    assert info.value.detail == "Not a participant of this conversation"


@pytest.mark.asyncio
async def test_unopened_client_raises():
    with pytest.raises(ChatApiError):
        await ChatApi("http://chat.test", "tok").list_active()
