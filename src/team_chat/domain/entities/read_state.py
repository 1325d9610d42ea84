from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from team_chat.domain.value_objects.ids import UserRef


@dataclass(frozen=True, slots=True)
class ReadState:
    channel_id: UUID
    user_ref: UserRef
    last_read_seq: int
    last_read_message_id: UUID | None
    last_read_at: datetime
