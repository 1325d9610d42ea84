from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from uuid import UUID

from team_chat.application.dto.message import (
    MessagePage,
    MessageView,
    PageRequest,
    ReplyPreview,
    SendMessageDTO,
)
from team_chat.application.exceptions import (
    InvalidReply,
    NotFoundError,
    UnknownIdentity,
    ValidationError,
)
from team_chat.application.policies.permissions import assert_channel_access
from team_chat.application.ports.bus import EventPublisher
from team_chat.application.ports.notifier import OfflineNotifier
from team_chat.application.uow import UnitOfWork
from team_chat.config import settings
from team_chat.domain.entities.channel import Channel
from team_chat.domain.entities.message import Attachment, Mention, Message
from team_chat.domain.events.message_created import MessageCreated
from team_chat.domain.value_objects.ids import UserRef
from team_chat.services import channel_service, fanout

logger = logging.getLogger(__name__)


async def append(
    channel_id: UUID,
    sender_ref: UserRef,
    content: str,
    uow: UnitOfWork,
    *,
    client_msg_id: UUID,
    reply_to_id: UUID | None = None,
    attachments: tuple[Attachment, ...] = (),
    mentions: tuple[Mention, ...] = (),
) -> tuple[Message, bool]:
    """Validate and append one message. Returns (stored_message, created).

    The returned message is the canonical row (store-assigned id, seq and
    timestamp); callers build every event and response from it. The channel
    row stays locked until commit, so a later seq in a channel never becomes
    visible before an earlier one.
    """
    channel = await uow.channels.lock_for_append(channel_id)
    if channel is None:
        raise NotFoundError("Channel not found")

    if await uow.users.get_by_subject(sender_ref) is None:
        raise UnknownIdentity(f"Unknown sender: {sender_ref}")

    await assert_channel_access(sender_ref, channel, uow.members)

    content = content.strip()
    if not content and not attachments:
        raise ValidationError("Message must have content or attachments")
    if len(content) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(
            f"Message exceeds {settings.MESSAGE_MAX_LENGTH} characters"
        )

    if reply_to_id is not None:
        target = await uow.messages.get_by_id(reply_to_id)
        if target is None or target.channel_id != channel_id:
            raise InvalidReply("Reply target is not a message in this channel")

    msg = Message(
        id=uuid.uuid4(),
        seq=0,
        channel_id=channel_id,
        sender_ref=sender_ref,
        content=content,
        reply_to_id=reply_to_id,
        client_msg_id=client_msg_id,
        created_at=datetime.now(timezone.utc),
        attachments=attachments,
        mentions=mentions,
    )
    msg, created = await uow.messages_w.create_if_not_exists(msg)
    if created:
        await uow.commit()
    return msg, created


async def send_message(
    dto: SendMessageDTO,
    sender_ref: UserRef,
    uow: UnitOfWork,
    publisher: EventPublisher,
    notifier: OfflineNotifier | None = None,
) -> tuple[MessageView, bool]:
    """Write API: send to an existing channel or to a pending DM pair.

    The message counts as sent once the append commits. Fan-out and offline
    notification run afterwards and cannot undo it.
    """
    channel = await _resolve_target(dto, sender_ref, uow)

    msg, created = await append(
        channel.id,
        sender_ref,
        dto.content,
        uow,
        client_msg_id=dto.client_msg_id,
        reply_to_id=dto.reply_to_id,
        attachments=dto.attachments,
        mentions=dto.mentions,
    )

    sender = await uow.users.get_by_subject(sender_ref)
    view = MessageView(message=msg, sender=sender)
    if msg.reply_to_id is not None:
        previews = await _reply_previews(uow, [msg])
        view = replace(view, reply_to=previews.get(msg.reply_to_id))

    if created:
        await fanout.publish_event(
            publisher,
            channel,
            MessageCreated(
                channel_id=channel.id,
                message=msg,
                sender_name=sender.name if sender else None,
            ),
        )
        members = await uow.members.list_members(channel.id)
        await fanout.notify_offline(
            notifier,
            channel,
            msg,
            [m.user_ref for m in members if m.user_ref != sender_ref],
        )
    else:
        logger.debug("Duplicate send for client_msg_id=%s", dto.client_msg_id)

    return view, created


async def _resolve_target(
    dto: SendMessageDTO, sender_ref: UserRef, uow: UnitOfWork,
) -> Channel:
    if dto.channel_id is not None:
        channel = await uow.channels.get_by_id(dto.channel_id)
        if channel is None:
            raise NotFoundError("Channel not found")
        return channel

    if dto.recipient_ref is None:
        raise ValidationError("Either channel_id or recipient_ref is required")

    return await channel_service.open_direct_channel(sender_ref, dto.recipient_ref, uow)


async def list_messages(
    channel_id: UUID,
    user_ref: UserRef,
    page: PageRequest,
    uow: UnitOfWork,
) -> MessagePage:
    channel = await uow.channels.get_by_id(channel_id)
    await assert_channel_access(user_ref, channel, uow.members)

    limit = max(1, min(page.limit, settings.MESSAGE_PAGE_MAX))
    result = await uow.messages.list_messages(channel_id, replace(page, limit=limit))

    replying = [v.message for v in result.items if v.message.reply_to_id is not None]
    if not replying:
        return result

    previews = await _reply_previews(uow, replying)
    items = [
        replace(v, reply_to=previews.get(v.message.reply_to_id))
        if v.message.reply_to_id is not None
        else v
        for v in result.items
    ]
    return MessagePage(items=items, next_cursor=result.next_cursor)


async def _reply_previews(
    uow: UnitOfWork, messages: list[Message],
) -> dict[UUID, ReplyPreview]:
    ids = [m.reply_to_id for m in messages if m.reply_to_id is not None]
    views = await uow.messages.get_views(ids)
    return {
        message_id: ReplyPreview(
            id=view.message.id,
            sender_ref=view.message.sender_ref,
            sender=view.sender,
            content=view.message.content,
        )
        for message_id, view in views.items()
    }
