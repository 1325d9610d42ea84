from __future__ import annotations

from team_chat.domain.entities.channel import Channel
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.models.channel import ChannelModel


def model_to_entity(model: ChannelModel) -> Channel:
    pair = None
    if model.dm_user_low is not None and model.dm_user_high is not None:
        pair = (UserRef(model.dm_user_low), UserRef(model.dm_user_high))
    return Channel(
        id=model.id,
        type=model.type,
        name=model.name,
        dm_participants=pair,
        created_by=UserRef(model.created_by),
        created_at=model.created_at,
    )


def entity_to_values(entity: Channel) -> dict:
    low, high = entity.dm_participants or (None, None)
    return {
        "id": entity.id,
        "type": str(entity.type),
        "name": entity.name,
        "dm_user_low": low,
        "dm_user_high": high,
        "created_by": entity.created_by,
        "created_at": entity.created_at,
    }
