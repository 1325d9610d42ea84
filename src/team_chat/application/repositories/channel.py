from __future__ import annotations

from typing import Protocol
from uuid import UUID

from team_chat.domain.entities.channel import Channel
from team_chat.domain.value_objects.ids import UserRef


class ChannelReader(Protocol):
    async def get_by_id(self, channel_id: UUID) -> Channel | None: ...

    async def get_dm(self, p0: UserRef, p1: UserRef) -> Channel | None:
        """Exact lookup by canonical (sorted) pair."""
        ...

    async def get_public_by_name(self, name: str) -> Channel | None: ...

    async def list_for_user(self, user_ref: UserRef) -> list[Channel]: ...

    async def lock_for_append(self, channel_id: UUID) -> Channel | None:
        """Fetch the channel and hold its row lock until the transaction ends.

        Appends to one channel are serialized on this lock, so seq order
        within a channel is also commit order.
        """
        ...


class ChannelWriter(Protocol):
    async def insert_public(self, channel: Channel) -> Channel:
        """Insert a public channel guarded by the unique name index.

        Raises ChannelRaceLost if the name is already taken.
        """
        ...

    async def insert_dm(self, channel: Channel) -> Channel:
        """Insert a DM row guarded by the unique pair index.

        Raises ChannelRaceLost if another transaction already holds the pair.
        """
        ...
