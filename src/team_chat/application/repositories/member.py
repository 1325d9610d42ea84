from __future__ import annotations

from typing import Protocol
from uuid import UUID

from team_chat.domain.entities.member import ChannelMember
from team_chat.domain.value_objects.ids import UserRef


class MemberReader(Protocol):
    async def is_member(self, channel_id: UUID, user_ref: UserRef) -> bool: ...

    async def list_members(self, channel_id: UUID) -> list[ChannelMember]: ...


class MemberWriter(Protocol):
    async def add(self, member: ChannelMember) -> None:
        """Idempotent: an existing membership is left untouched."""
        ...
