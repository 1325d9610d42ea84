from __future__ import annotations

import uuid

import httpx
import pytest
import respx

from team_chat.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    TransientWriteFailure,
    UnknownIdentity,
    ValidationError,
)
from team_chat.client.http_api import HttpMessagingApi

BASE = "http://chat.test"
CHANNEL = str(uuid.uuid4())


def _message_body(client_msg_id: str, seq: int = 1) -> dict:
    return {
        "id": str(uuid.uuid4()),
        "seq": seq,
        "channel_id": CHANNEL,
        "sender": {"ref": "u_alice", "name": "Alice"},
        "content": "hi",
        "reply_to_id": None,
        "reply_to": None,
        "attachments": [],
        "mentions": [],
        "client_msg_id": client_msg_id,
        "created_at": "2026-03-01T10:00:00+00:00",
    }


@pytest.fixture
def api():
    return HttpMessagingApi(BASE, token="tok")


@pytest.mark.asyncio
@respx.mock
async def test_send_message_posts_and_parses(api):
    client_msg_id = str(uuid.uuid4())
    route = respx.post(f"{BASE}/api/v1/chat/channels/{CHANNEL}/messages").mock(
        return_value=httpx.Response(201, json=_message_body(client_msg_id, seq=9)),
    )

    msg = await api.send_message(CHANNEL, client_msg_id=client_msg_id, content="hi")

    assert route.called
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer tok"
    assert msg.seq == 9
    assert msg.sender_ref == "u_alice"
    assert msg.client_msg_id == client_msg_id
    assert not msg.pending


@pytest.mark.asyncio
@respx.mock
async def test_list_messages_passes_cursor(api):
    route = respx.get(f"{BASE}/api/v1/chat/channels/{CHANNEL}/messages").mock(
        return_value=httpx.Response(
            200,
            json={"items": [_message_body(str(uuid.uuid4()), seq=4)], "next_cursor": "abc"},
        ),
    )

    items, cursor = await api.list_messages(CHANNEL, cursor="xyz", direction="after", limit=10)

    params = route.calls.last.request.url.params
    assert params["cursor"] == "xyz"
    assert params["direction"] == "after"
    assert params["limit"] == "10"
    assert [m.seq for m in items] == [4]
    assert cursor == "abc"


@pytest.mark.asyncio
@respx.mock
@pytest.mark.parametrize(
    ("status", "error"),
    [
        (401, UnknownIdentity),
        (403, ForbiddenError),
        (404, NotFoundError),
        (422, ValidationError),
        (503, TransientWriteFailure),
    ],
)
async def test_error_statuses_map_to_app_errors(api, status, error):
    respx.post(f"{BASE}/api/v1/chat/channels/{CHANNEL}/read").mock(
        return_value=httpx.Response(status, json={"detail": "nope"}),
    )

    with pytest.raises(error):
        await api.mark_read(CHANNEL)


@pytest.mark.asyncio
@respx.mock
async def test_network_error_is_transient(api):
    respx.post(f"{BASE}/api/v1/chat/channels/{CHANNEL}/messages").mock(
        side_effect=httpx.ConnectError("refused"),
    )

    with pytest.raises(TransientWriteFailure):
        await api.send_message(CHANNEL, client_msg_id=str(uuid.uuid4()), content="hi")


@pytest.mark.asyncio
@respx.mock
async def test_direct_message_to_peer(api):
    client_msg_id = str(uuid.uuid4())
    route = respx.post(f"{BASE}/api/v1/chat/dms/u_bob/messages").mock(
        return_value=httpx.Response(201, json=_message_body(client_msg_id)),
    )

    await api.send_direct_message("u_bob", client_msg_id=client_msg_id, content="hi")

    assert route.called


@pytest.mark.asyncio
@respx.mock
async def test_total_unread(api):
    respx.get(f"{BASE}/api/v1/chat/unread").mock(
        return_value=httpx.Response(200, json={"count": 5}),
    )

    assert await api.total_unread() == 5
