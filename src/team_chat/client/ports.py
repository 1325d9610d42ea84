from __future__ import annotations

from typing import Literal, Protocol

from team_chat.client.models import ClientMessage


class MessagingApi(Protocol):
    """Write/read surface a channel view talks to."""

    async def send_message(
        self,
        channel_id: str,
        *,
        client_msg_id: str,
        content: str,
        reply_to_id: str | None = None,
    ) -> ClientMessage: ...

    async def list_messages(
        self,
        channel_id: str,
        *,
        cursor: str | None = None,
        direction: Literal["before", "after"] = "before",
        limit: int = 50,
    ) -> tuple[list[ClientMessage], str | None]: ...

    async def mark_read(self, channel_id: str, up_to_message_id: str | None = None) -> None: ...
