from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from team_chat.domain.entities.message import Message
from team_chat.domain.value_objects.enums import EventType


def message_to_payload(message: Message, sender_name: str | None = None) -> dict[str, Any]:
    return {
        "id": str(message.id),
        "seq": message.seq,
        "channel_id": str(message.channel_id),
        "sender_ref": message.sender_ref,
        "sender_name": sender_name,
        "content": message.content,
        "reply_to_id": str(message.reply_to_id) if message.reply_to_id else None,
        "attachments": [a.to_dict() for a in message.attachments],
        "mentions": [m.to_dict() for m in message.mentions],
        "client_msg_id": str(message.client_msg_id),
        "created_at": message.created_at.isoformat(),
    }


@dataclass(frozen=True, slots=True)
class MessageCreated:
    channel_id: UUID
    message: Message
    sender_name: str | None = None

    event_type = EventType.MESSAGE_CREATED

    def to_payload(self) -> dict[str, Any]:
        return {
            "channel_id": str(self.channel_id),
            "event_type": self.event_type.value,
            "message": message_to_payload(self.message, self.sender_name),
        }
