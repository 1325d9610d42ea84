from __future__ import annotations

from team_chat.application.exceptions import ForbiddenError, NotFoundError
from team_chat.application.repositories.member import MemberReader
from team_chat.domain.entities.channel import Channel
from team_chat.domain.value_objects.ids import UserRef


async def assert_channel_access(
    user_ref: UserRef,
    channel: Channel | None,
    members: MemberReader,
) -> Channel:
    """Raise if the channel doesn't exist or the user is not a member."""
    if channel is None:
        raise NotFoundError("Channel not found")

    is_member = await members.is_member(channel.id, user_ref)
    if not is_member:
        raise ForbiddenError("Not a member of this channel")

    return channel
