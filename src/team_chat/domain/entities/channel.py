from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from team_chat.domain.value_objects.channel_key import dm_topic, public_topic
from team_chat.domain.value_objects.enums import ChannelType
from team_chat.domain.value_objects.ids import UserRef


@dataclass(frozen=True, slots=True)
class Channel:
    id: UUID
    type: str
    name: str
    dm_participants: tuple[UserRef, UserRef] | None
    created_by: UserRef
    created_at: datetime

    @property
    def is_dm(self) -> bool:
        return self.type == ChannelType.DM

    @property
    def topic(self) -> str:
        if self.is_dm and self.dm_participants is not None:
            return dm_topic(*self.dm_participants)
        return public_topic(self.id)

    def other_participant(self, me: UserRef) -> UserRef | None:
        if self.dm_participants is None:
            return None
        p0, p1 = self.dm_participants
        if p0 == me:
            return p1
        if p1 == me:
            return p0
        return None
