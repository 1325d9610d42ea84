from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from team_chat.application.dto.message import MessagePage, MessageView, PageRequest
from team_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def get_views(self, message_ids: Iterable[UUID]) -> dict[UUID, MessageView]: ...

    async def list_messages(self, channel_id: UUID, page: PageRequest) -> MessagePage:
        """One page in ascending seq order, sender joined with outer-join semantics.

        ``before`` (the default) returns the newest rows below the cursor,
        ``after`` the oldest rows above it.
        """
        ...

    async def latest_in_channel(self, channel_id: UUID) -> MessageView | None: ...


class MessageWriter(Protocol):
    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message and assign its seq. Return (message, created).

        On conflict on (channel_id, sender_ref, client_msg_id) the stored
        message is returned with created=False.
        """
        ...
