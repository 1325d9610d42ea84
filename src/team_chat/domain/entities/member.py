from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from team_chat.domain.value_objects.ids import UserRef


@dataclass(frozen=True, slots=True)
class ChannelMember:
    channel_id: UUID
    user_ref: UserRef
    joined_at: datetime
