"""Per-channel client view: optimistic sends merged with broadcast events.

Rendering order is always the store's ``seq``. Broadcasts are a latency
optimisation only; anything they miss is picked up by ``refresh()``.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from team_chat.application.dto.events import BroadcastEvent
from team_chat.application.exceptions import AppError
from team_chat.client.models import ClientMessage
from team_chat.client.ports import MessagingApi
from team_chat.config import settings
from team_chat.domain.value_objects.cursor import encode_cursor
from team_chat.domain.value_objects.enums import EventType
from team_chat.domain.value_objects.ids import UserRef

logger = logging.getLogger(__name__)


class ViewState(StrEnum):
    IDLE = "idle"
    SENDING = "sending"


class ChannelView:
    def __init__(
        self,
        channel_id: str,
        me: UserRef,
        api: MessagingApi,
        *,
        queue_size: int | None = None,
        page_size: int = 50,
    ) -> None:
        self.channel_id = channel_id
        self.me = me
        self._api = api
        self._page_size = page_size

        self.state = ViewState.IDLE
        self.draft = ""
        self.error: AppError | None = None
        # reader_ref -> last message id they have read
        self.read_receipts: dict[UserRef, str | None] = {}

        self._confirmed: dict[str, ClientMessage] = {}
        self._pending: dict[str, ClientMessage] = {}
        # (draft content, client_msg_id) of the last failed send
        self._retry: tuple[str, str] | None = None
        self._events: asyncio.Queue[BroadcastEvent] = asyncio.Queue(
            maxsize=queue_size or settings.CLIENT_EVENT_QUEUE_SIZE,
        )
        self._consumer: asyncio.Task[None] | None = None
        self._stale = False
        self._closed = False

    # -- rendering ---------------------------------------------------------

    @property
    def messages(self) -> list[ClientMessage]:
        confirmed = sorted(self._confirmed.values(), key=lambda m: m.seq or 0)
        return confirmed + list(self._pending.values())

    @property
    def last_seq(self) -> int | None:
        return max((m.seq for m in self._confirmed.values() if m.seq is not None), default=None)

    @property
    def stale(self) -> bool:
        """True when broadcast events were dropped and a refresh is due."""
        return self._stale

    # -- lifecycle ---------------------------------------------------------

    async def open(self) -> None:
        items, _ = await self._api.list_messages(self.channel_id, limit=self._page_size)
        for msg in items:
            self._merge(msg)
        self._consumer = asyncio.create_task(
            self._consume(), name=f"channel-view-{self.channel_id}",
        )

    async def close(self) -> None:
        """Stop applying events. An in-flight send is left to finish."""
        self._closed = True
        if self._consumer:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

    # -- sending -----------------------------------------------------------

    async def send(self, content: str, reply_to_id: str | None = None) -> ClientMessage | None:
        """Send ``content``. Returns None for a rejected double submit or a failure.

        The in-flight guard is taken before the first await, so a second
        call in the same tick sees SENDING and returns immediately.
        """
        if self.state is ViewState.SENDING:
            return None
        if not content.strip():
            return None
        self.state = ViewState.SENDING

        # Resending a restored draft reuses its key so the server dedups it.
        if self._retry is not None and self._retry[0] == content:
            client_msg_id = self._retry[1]
        else:
            client_msg_id = str(uuid.uuid4())
        self._retry = None
        self._pending[client_msg_id] = ClientMessage(
            id=None,
            seq=None,
            channel_id=self.channel_id,
            sender_ref=self.me,
            sender_name=None,
            content=content,
            client_msg_id=client_msg_id,
            created_at=datetime.now(timezone.utc),
            reply_to_id=reply_to_id,
        )
        self.draft = ""
        self.error = None

        try:
            stored = await self._api.send_message(
                self.channel_id,
                client_msg_id=client_msg_id,
                content=content,
                reply_to_id=reply_to_id,
            )
        except AppError as exc:
            self._pending.pop(client_msg_id, None)
            echoed = self._confirmed_by_client_id(client_msg_id)
            if echoed is not None:
                logger.info(
                    "Send response lost in %s but message %s was echoed", self.channel_id, echoed.id,
                )
                return echoed
            self.draft = content
            self.error = exc
            self._retry = (content, client_msg_id)
            logger.info("Send failed in %s: %s", self.channel_id, exc.detail)
            return None
        finally:
            self.state = ViewState.IDLE

        self._merge(stored)
        return stored

    # -- broadcast intake --------------------------------------------------

    def deliver(self, event: BroadcastEvent) -> bool:
        """Queue a broadcast event for this view. Never blocks.

        A full queue drops the event and flags the view stale; the next
        refresh recovers whatever was dropped.
        """
        if self._closed or event.channel_id != self.channel_id:
            return False
        try:
            self._events.put_nowait(event)
        except asyncio.QueueFull:
            self._stale = True
            logger.warning("Event queue full for %s, dropping %s", self.channel_id, event.event_type)
            return False
        return True

    async def _consume(self) -> None:
        while True:
            event = await self._events.get()
            try:
                self.apply(event)
            except (KeyError, ValueError):
                logger.warning("Malformed %s event in %s", event.event_type, self.channel_id)
            finally:
                self._events.task_done()

    def apply(self, event: BroadcastEvent) -> None:
        if event.event_type == EventType.MESSAGE_CREATED:
            self._merge(ClientMessage.from_event(event.payload["message"]))
        elif event.event_type == EventType.CHANNEL_READ:
            self._apply_read(event.payload)

    def _apply_read(self, payload: dict[str, Any]) -> None:
        reader = UserRef(payload["reader_ref"])
        if reader == self.me:
            return
        self.read_receipts[reader] = payload.get("last_read_message_id")

    # -- reconciliation ----------------------------------------------------

    def _merge(self, msg: ClientMessage) -> None:
        """Insert a confirmed message unless its id is already present.

        A confirmed copy of one of our own sends replaces the optimistic
        entry carrying the same client_msg_id.
        """
        if msg.sender_ref == self.me:
            self._pending.pop(msg.client_msg_id, None)
        if msg.id is None or msg.id in self._confirmed:
            return
        self._confirmed[msg.id] = msg

    def _confirmed_by_client_id(self, client_msg_id: str) -> ClientMessage | None:
        return next(
            (
                m for m in self._confirmed.values()
                if m.sender_ref == self.me and m.client_msg_id == client_msg_id
            ),
            None,
        )

    async def refresh(self) -> int:
        """Catch up after a reconnect. Returns the number of messages fetched."""
        after = self.last_seq
        if after is None:
            items, _ = await self._api.list_messages(self.channel_id, limit=self._page_size)
            for msg in items:
                self._merge(msg)
            self._stale = False
            return len(items)

        cursor: str | None = encode_cursor(after)
        fetched = 0
        while True:
            items, cursor = await self._api.list_messages(
                self.channel_id,
                cursor=cursor,
                direction="after",
                limit=self._page_size,
            )
            for msg in items:
                self._merge(msg)
            fetched += len(items)
            if len(items) < self._page_size:
                break
        self._stale = False
        return fetched

    async def mark_read(self) -> None:
        last = next((m for m in reversed(self.messages) if not m.pending), None)
        if last is None:
            return
        await self._api.mark_read(self.channel_id, last.id)

