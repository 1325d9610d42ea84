"""Client-side message representation shared by the reconciler and transports."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from team_chat.domain.value_objects.ids import UserRef


@dataclass(frozen=True, slots=True)
class ClientMessage:
    """A message as a view renders it.

    Optimistic entries have ``id=None`` and ``seq=None`` until the store
    confirms them.
    """

    id: str | None
    seq: int | None
    channel_id: str
    sender_ref: UserRef
    sender_name: str | None
    content: str
    client_msg_id: str
    created_at: datetime
    reply_to_id: str | None = None

    @property
    def pending(self) -> bool:
        return self.id is None

    @classmethod
    def from_event(cls, data: dict[str, Any]) -> ClientMessage:
        """Build from the ``message`` object of a message.created payload."""
        return cls(
            id=data["id"],
            seq=int(data["seq"]),
            channel_id=data["channel_id"],
            sender_ref=UserRef(data["sender_ref"]),
            sender_name=data.get("sender_name"),
            content=data.get("content", ""),
            client_msg_id=data["client_msg_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            reply_to_id=data.get("reply_to_id"),
        )

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> ClientMessage:
        """Build from a REST MessageResponse body."""
        sender = data.get("sender") or {}
        return cls(
            id=data["id"],
            seq=int(data["seq"]),
            channel_id=data["channel_id"],
            sender_ref=UserRef(sender.get("ref", "")),
            sender_name=sender.get("name"),
            content=data.get("content", ""),
            client_msg_id=data["client_msg_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            reply_to_id=data.get("reply_to_id"),
        )
