"""In-process WebSocket connection manager."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

from team_chat.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks sockets per user and which topics each socket listens to.

    Subscriptions are per socket, so a user with two tabs can watch
    different channels in each.
    """

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {}
        self._subscriptions: dict[str, set[WebSocket]] = {}

    async def connect(self, ws: WebSocket, user_ref: str) -> None:
        await ws.accept()
        self._connections.setdefault(user_ref, set()).add(ws)
        logger.debug("WS connected: %s (users=%d)", user_ref, len(self._connections))

    def disconnect(self, ws: WebSocket, user_ref: str) -> None:
        conns = self._connections.get(user_ref)
        if conns:
            conns.discard(ws)
            if not conns:
                del self._connections[user_ref]
        for topic in [t for t, subs in self._subscriptions.items() if ws in subs]:
            self._drop(topic, ws)
        logger.debug("WS disconnected: %s", user_ref)

    def subscribe(self, ws: WebSocket, topic: str) -> None:
        self._subscriptions.setdefault(topic, set()).add(ws)

    def unsubscribe(self, ws: WebSocket, topic: str) -> None:
        self._drop(topic, ws)

    def _drop(self, topic: str, ws: WebSocket) -> None:
        subs = self._subscriptions.get(topic)
        if subs is None:
            return
        subs.discard(ws)
        if not subs:
            del self._subscriptions[topic]

    async def broadcast_to_topic(
        self,
        topic: str,
        event_type: str,
        data: dict[str, Any],
    ) -> int:
        """Send an event to every socket subscribed to ``topic``.

        Returns the number of sockets reached. Sockets that fail to receive
        are dropped from every subscription.
        """
        subs = list(self._subscriptions.get(topic, ()))
        raw = WsOutbound(type=event_type, topic=topic, data=data).model_dump_json()
        delivered = 0
        dead: list[WebSocket] = []
        for ws in subs:
            try:
                await ws.send_text(raw)
                delivered += 1
            except Exception:
                dead.append(ws)
        for ws in dead:
            for user_ref, conns in list(self._connections.items()):
                if ws in conns:
                    self.disconnect(ws, user_ref)
        return delivered
