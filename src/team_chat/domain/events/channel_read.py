from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from team_chat.domain.value_objects.enums import EventType
from team_chat.domain.value_objects.ids import UserRef


@dataclass(frozen=True, slots=True)
class ChannelRead:
    channel_id: UUID
    reader_ref: UserRef
    read_at: datetime
    last_read_message_id: UUID | None

    event_type = EventType.CHANNEL_READ

    def to_payload(self) -> dict[str, Any]:
        return {
            "channel_id": str(self.channel_id),
            "event_type": self.event_type.value,
            "reader_ref": self.reader_ref,
            "read_at": self.read_at.isoformat(),
            "last_read_message_id": (
                str(self.last_read_message_id) if self.last_read_message_id else None
            ),
        }
