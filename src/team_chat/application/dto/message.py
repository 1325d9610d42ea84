from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

from team_chat.domain.entities.message import Attachment, Mention, Message
from team_chat.domain.entities.user import User
from team_chat.domain.value_objects.ids import UserRef


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    """Either ``channel_id`` or ``recipient_ref`` (a pending DM) must be set."""

    client_msg_id: UUID
    content: str = ""
    channel_id: UUID | None = None
    recipient_ref: UserRef | None = None
    reply_to_id: UUID | None = None
    attachments: tuple[Attachment, ...] = ()
    mentions: tuple[Mention, ...] = ()


@dataclass(frozen=True, slots=True)
class PageRequest:
    cursor: str | None = None
    limit: int = 50
    direction: Literal["before", "after"] = "before"


@dataclass(frozen=True, slots=True)
class ReplyPreview:
    id: UUID
    sender_ref: UserRef
    sender: User | None
    content: str


@dataclass(frozen=True, slots=True)
class MessageView:
    """A message joined with its (optional) sender profile."""

    message: Message
    sender: User | None
    reply_to: ReplyPreview | None = None


@dataclass(frozen=True, slots=True)
class MessagePage:
    items: list[MessageView] = field(default_factory=list)
    next_cursor: str | None = None
