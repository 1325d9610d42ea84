"""WebSocket frames exchanged on /ws/chat."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

InboundType = Literal["subscribe", "unsubscribe", "message.send", "mark_read", "ping"]


class WsInbound(BaseModel):
    """Client -> Server."""

    type: InboundType
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server -> Client.

    ``type`` is an event type (message.created, channel.read) or one of
    subscribed, unsubscribed, ack, error, pong.
    """

    type: str
    topic: str | None = None
    data: dict[str, Any] = {}
