from __future__ import annotations

from team_chat.application.dto.message import MessageView
from team_chat.domain.entities.message import Attachment, Mention, Message
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.mappers import user as user_mapper
from team_chat.infrastructure.db.models.message import MessageModel
from team_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        seq=model.seq,
        channel_id=model.channel_id,
        sender_ref=UserRef(model.sender_ref),
        content=model.content,
        reply_to_id=model.reply_to_id,
        client_msg_id=model.client_msg_id,
        created_at=model.created_at,
        attachments=tuple(Attachment.from_dict(a) for a in model.attachments or ()),
        mentions=tuple(Mention.from_dict(m) for m in model.mentions or ()),
    )


def row_to_view(model: MessageModel, sender: UserModel | None) -> MessageView:
    """Outer-join row: ``sender`` is None when the ref no longer resolves."""
    return MessageView(
        message=model_to_entity(model),
        sender=user_mapper.model_to_entity(sender) if sender is not None else None,
    )


def entity_to_values(entity: Message) -> dict:
    """Insert values. ``seq`` is left to the database identity."""
    return {
        "id": entity.id,
        "channel_id": entity.channel_id,
        "sender_ref": entity.sender_ref,
        "content": entity.content,
        "reply_to_id": entity.reply_to_id,
        "attachments": [a.to_dict() for a in entity.attachments],
        "mentions": [m.to_dict() for m in entity.mentions],
        "client_msg_id": entity.client_msg_id,
        "created_at": entity.created_at,
    }
