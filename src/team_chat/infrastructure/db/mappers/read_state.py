from __future__ import annotations

from team_chat.domain.entities.read_state import ReadState
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.models.read_state import ReadStateModel


def model_to_entity(model: ReadStateModel) -> ReadState:
    return ReadState(
        channel_id=model.channel_id,
        user_ref=UserRef(model.user_ref),
        last_read_seq=model.last_read_seq,
        last_read_message_id=model.last_read_message_id,
        last_read_at=model.last_read_at,
    )
