from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from team_chat.api.v1.schemas.user import UserResponse
from team_chat.application.dto.message import MessageView, ReplyPreview, SendMessageDTO
from team_chat.domain.entities.message import Attachment, Mention
from team_chat.domain.value_objects.enums import AttachmentKind


class AttachmentSchema(BaseModel):
    url: str
    kind: AttachmentKind = AttachmentKind.FILE
    filename: str | None = None
    public_id: str | None = None


class MentionSchema(BaseModel):
    ref_id: str
    label: str = ""


class SendMessageRequest(BaseModel):
    client_msg_id: UUID
    content: str = ""
    reply_to_id: UUID | None = None
    attachments: list[AttachmentSchema] = Field(default_factory=list)
    mentions: list[MentionSchema] = Field(default_factory=list)

    def to_dto(
        self,
        *,
        channel_id: UUID | None = None,
        recipient_ref: str | None = None,
    ) -> SendMessageDTO:
        return SendMessageDTO(
            client_msg_id=self.client_msg_id,
            content=self.content,
            channel_id=channel_id,
            recipient_ref=recipient_ref,
            reply_to_id=self.reply_to_id,
            attachments=tuple(
                Attachment(url=a.url, kind=a.kind.value, filename=a.filename, public_id=a.public_id)
                for a in self.attachments
            ),
            mentions=tuple(Mention(ref_id=m.ref_id, label=m.label) for m in self.mentions),
        )


class ReplyPreviewResponse(BaseModel):
    id: UUID
    sender: UserResponse
    content: str

    @classmethod
    def from_preview(cls, preview: ReplyPreview) -> ReplyPreviewResponse:
        return cls(
            id=preview.id,
            sender=UserResponse.from_user(preview.sender, preview.sender_ref),
            content=preview.content,
        )


class MessageResponse(BaseModel):
    id: UUID
    seq: int
    channel_id: UUID
    sender: UserResponse
    content: str
    reply_to_id: UUID | None
    reply_to: ReplyPreviewResponse | None = None
    attachments: list[AttachmentSchema]
    mentions: list[MentionSchema]
    client_msg_id: UUID
    created_at: datetime

    @classmethod
    def from_view(cls, view: MessageView) -> MessageResponse:
        msg = view.message
        return cls(
            id=msg.id,
            seq=msg.seq,
            channel_id=msg.channel_id,
            sender=UserResponse.from_user(view.sender, msg.sender_ref),
            content=msg.content,
            reply_to_id=msg.reply_to_id,
            reply_to=ReplyPreviewResponse.from_preview(view.reply_to) if view.reply_to else None,
            attachments=[AttachmentSchema(**a.to_dict()) for a in msg.attachments],
            mentions=[MentionSchema(**m.to_dict()) for m in msg.mentions],
            client_msg_id=msg.client_msg_id,
            created_at=msg.created_at,
        )


class MarkReadRequest(BaseModel):
    up_to_message_id: UUID | None = None


class ReadStateResponse(BaseModel):
    channel_id: UUID
    user_ref: str
    last_read_message_id: UUID | None
    last_read_at: datetime

    model_config = {"from_attributes": True}
