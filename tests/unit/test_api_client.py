from __future__ import annotations

import json
import uuid

import httpx
import pytest

from coach_messaging.client.api_client import MessagingAPIError, MessagingClient
from tests.conftest import T0


def _message(coach_id, client_id, body, seq):
    return {
        "id": str(uuid.uuid4()),
        "coach_id": str(coach_id),
        "client_id": str(client_id),
        "sender_id": str(coach_id),
        "body": body,
        "seq": seq,
        "created_at": T0.isoformat(),
        "read_at": None,
    }


@pytest.fixture
def ids():
    return uuid.uuid4(), uuid.uuid4()


def _client(handler) -> MessagingClient:
    return MessagingClient("http://test", "tkn", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_and_send(ids):
    coach_id, client_id = ids
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET":
            return httpx.Response(200, json=[_message(coach_id, client_id, "hi", 1)])
        body = json.loads(request.content)["body"]
        return httpx.Response(201, json=_message(coach_id, client_id, body, 2))

    async with _client(handler) as api:
        listed = await api.list_thread(coach_id, client_id, limit=20)
        sent = await api.send_message(coach_id, client_id, "see you")

    assert [m.body for m in listed] == ["hi"]
    assert sent.seq == 2 and sent.body == "see you"
    assert seen[0].url.params["limit"] == "20"
    assert seen[0].headers["Authorization"] == "Bearer tkn"
    assert seen[1].url.path == f"/api/v1/threads/{coach_id}/{client_id}/messages"


@pytest.mark.asyncio
async def test_error_detail_is_surfaced(ids):
    coach_id, client_id = ids

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Thread not found"})

    async with _client(handler) as api:
        with pytest.raises(MessagingAPIError) as exc_info:
            await api.mark_read(coach_id, client_id)

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Thread not found"
