from __future__ import annotations

from team_chat.domain.entities.member import ChannelMember
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.models.member import ChannelMemberModel


def model_to_entity(model: ChannelMemberModel) -> ChannelMember:
    return ChannelMember(
        channel_id=model.channel_id,
        user_ref=UserRef(model.user_ref),
        joined_at=model.joined_at,
    )
