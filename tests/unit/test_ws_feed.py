from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone

import pytest

from team_chat.client.reconciler import ChannelView
from team_chat.client.ws_feed import ChannelFeed
from tests.conftest import ALICE, BOB

WS_URL = "ws://chat.test/ws/chat"


class RecordingApi:
    def __init__(self) -> None:
        self.list_calls: list[tuple[str, str]] = []

    async def list_messages(self, channel_id, *, cursor=None, direction="before", limit=50):
        self.list_calls.append((channel_id, direction))
        return [], None


class FakeSocket:
    def __init__(self, frames: list[dict]) -> None:
        self.frames = frames
        self.sent: list[dict] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def send(self, raw: str) -> None:
        self.sent.append(json.loads(raw))

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        for frame in self.frames:
            await asyncio.sleep(0)
            yield json.dumps(frame)


class FakeServer:
    """Hands out scripted sockets; refuses and stops the feed once they run out."""

    def __init__(self, *sockets: FakeSocket) -> None:
        self.sockets = list(sockets)
        self.uris: list[str] = []
        self.feed: ChannelFeed | None = None

    def __call__(self, uri: str) -> FakeSocket:
        self.uris.append(uri)
        if not self.sockets:
            self.feed.stop()
            raise OSError("connection refused")
        return self.sockets.pop(0)


def _feed(server: FakeServer) -> ChannelFeed:
    feed = ChannelFeed(WS_URL, "abc", reconnect_delay=0, connect=server)
    server.feed = feed
    return feed


def _message_created(channel_id: str) -> dict:
    return {
        "type": "message.created",
        "topic": f"chat:channel:{channel_id}",
        "data": {
            "channel_id": channel_id,
            "event_type": "message.created",
            "message": {
                "id": str(uuid.uuid4()),
                "seq": 1,
                "channel_id": channel_id,
                "sender_ref": BOB,
                "sender_name": "Bob",
                "content": "hi",
                "reply_to_id": None,
                "client_msg_id": str(uuid.uuid4()),
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        },
    }


def _channel_read(channel_id: str) -> dict:
    return {
        "type": "channel.read",
        "topic": f"chat:channel:{channel_id}",
        "data": {
            "channel_id": channel_id,
            "event_type": "channel.read",
            "reader_ref": BOB,
            "read_at": datetime.now(timezone.utc).isoformat(),
            "last_read_message_id": None,
        },
    }


async def _open(channel_id: str, api: RecordingApi) -> ChannelView:
    view = ChannelView(channel_id, ALICE, api, queue_size=8)
    await view.open()
    return view


@pytest.mark.asyncio
async def test_feed_subscribes_views_and_routes_events():
    api = RecordingApi()
    chan_a, chan_b = str(uuid.uuid4()), str(uuid.uuid4())
    view_a, view_b = await _open(chan_a, api), await _open(chan_b, api)
    socket = FakeSocket([
        {"type": "subscribed", "topic": f"chat:channel:{chan_a}", "data": {"channel_id": chan_a}},
        _message_created(chan_a),
        _message_created(str(uuid.uuid4())),
        _channel_read(chan_b),
    ])
    server = FakeServer(socket)
    feed = _feed(server)
    await feed.attach(view_a)
    await feed.attach(view_b)

    await asyncio.wait_for(feed.run(), timeout=1)
    for view in (view_a, view_b):
        await asyncio.wait_for(view._events.join(), timeout=1)

    assert server.uris[0] == f"{WS_URL}?token=abc"
    assert socket.sent == [
        {"type": "subscribe", "data": {"channel_id": chan_a}},
        {"type": "subscribe", "data": {"channel_id": chan_b}},
    ]
    assert [m.content for m in view_a.messages] == ["hi"]
    assert view_b.messages == []
    assert view_b.read_receipts == {BOB: None}

    await view_a.close()
    await view_b.close()


@pytest.mark.asyncio
async def test_reconnect_resubscribes_and_refreshes():
    api = RecordingApi()
    channel_id = str(uuid.uuid4())
    view = await _open(channel_id, api)
    first, second = FakeSocket([]), FakeSocket([])
    feed = _feed(FakeServer(first, second))
    await feed.attach(view)

    await asyncio.wait_for(feed.run(), timeout=1)

    assert first.sent == second.sent == [{"type": "subscribe", "data": {"channel_id": channel_id}}]
    # one list for open(), one for the refresh after the reconnect
    assert len(api.list_calls) == 2

    await view.close()


def test_dispatch_ignores_undecodable_and_control_frames():
    feed = ChannelFeed(WS_URL, "t", connect=FakeServer())

    assert feed.dispatch("not json") is False
    assert feed.dispatch(json.dumps({"type": "pong", "data": {}})) is False
    assert feed.dispatch(json.dumps({"type": "error", "data": {"code": "x"}})) is False
