"""Live event feed: one /ws/chat connection shared by every open ChannelView."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable

import httpx
import websockets
from websockets.exceptions import ConnectionClosed

from team_chat.application.dto.events import BroadcastEvent
from team_chat.client.reconciler import ChannelView
from team_chat.domain.value_objects.enums import EventType

logger = logging.getLogger(__name__)

_EVENT_TYPES = {e.value for e in EventType}


class ChannelFeed:
    """Subscribes attached views to their topics and hands them broadcasts.

    After a reconnect every view is refreshed, since anything broadcast
    while the socket was down is gone.
    """

    def __init__(
        self,
        ws_url: str,
        token: str,
        *,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self._uri = str(httpx.URL(ws_url, params={"token": token}))
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._connect = connect
        self._views: dict[str, ChannelView] = {}
        self._ws: Any = None
        self._stopped = False
        self._sessions = 0

    async def attach(self, view: ChannelView) -> None:
        self._views[view.channel_id] = view
        if self._ws is not None:
            await self._subscribe(view.channel_id)

    async def detach(self, view: ChannelView) -> None:
        if self._views.pop(view.channel_id, None) is not None and self._ws is not None:
            await self._frame("unsubscribe", {"channel_id": view.channel_id})

    def stop(self) -> None:
        self._stopped = True

    async def run(self) -> None:
        delay = self._reconnect_delay
        while not self._stopped:
            try:
                await self._session()
                delay = self._reconnect_delay
            except (OSError, ConnectionClosed) as exc:
                logger.warning("Chat socket lost: %s", exc)
            finally:
                self._ws = None
            if self._stopped:
                break
            await asyncio.sleep(delay)
            delay = min(delay * 2, self._max_reconnect_delay)

    async def _session(self) -> None:
        async with self._connect(self._uri) as ws:
            self._ws = ws
            self._sessions += 1
            for channel_id in list(self._views):
                await self._subscribe(channel_id)
            if self._sessions > 1:
                for view in list(self._views.values()):
                    await view.refresh()
            async for raw in ws:
                self.dispatch(raw)
                if self._stopped:
                    return

    def dispatch(self, raw: str | bytes) -> bool:
        """Route one server frame. Returns True if a view accepted it."""
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning("Undecodable frame on chat socket")
            return False

        kind = frame.get("type")
        if kind == "error":
            logger.info("Chat socket error frame: %s", frame.get("data"))
            return False
        if kind not in _EVENT_TYPES:
            return False

        data = frame.get("data") or {}
        view = self._views.get(str(data.get("channel_id")))
        if view is None:
            return False
        return view.deliver(
            BroadcastEvent(topic=frame.get("topic") or "", event_type=kind, payload=data)
        )

    async def _subscribe(self, channel_id: str) -> None:
        await self._frame("subscribe", {"channel_id": channel_id})

    async def _frame(self, type_: str, data: dict[str, Any]) -> None:
        await self._ws.send(json.dumps({"type": type_, "data": data}))
