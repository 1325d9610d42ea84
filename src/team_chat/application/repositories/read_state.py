from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from team_chat.domain.entities.read_state import ReadState
from team_chat.domain.value_objects.ids import UserRef


class ReadStateReader(Protocol):
    async def get(self, channel_id: UUID, user_ref: UserRef) -> ReadState | None: ...

    async def unread_count(self, user_ref: UserRef, channel_id: UUID) -> int: ...

    async def unread_counts_for(self, user_ref: UserRef) -> dict[UUID, int]:
        """Unread count per channel the user is a member of."""
        ...


class ReadStateWriter(Protocol):
    async def advance(
        self,
        channel_id: UUID,
        user_ref: UserRef,
        seq: int,
        message_id: UUID | None,
        read_at: datetime,
    ) -> tuple[ReadState, bool]:
        """Raise the marker to ``seq`` if it is ahead of the stored one.

        Returns (stored_state, advanced).
        """
        ...
