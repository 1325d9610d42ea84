from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from team_chat.application.exceptions import ValidationError
from team_chat.application.policies.permissions import assert_channel_access
from team_chat.application.ports.bus import EventPublisher
from team_chat.application.uow import UnitOfWork
from team_chat.domain.entities.read_state import ReadState
from team_chat.domain.events.channel_read import ChannelRead
from team_chat.domain.value_objects.ids import UserRef
from team_chat.services import fanout


async def mark_read(
    user_ref: UserRef,
    channel_id: UUID,
    uow: UnitOfWork,
    publisher: EventPublisher,
    up_to_message_id: UUID | None = None,
) -> ReadState:
    """Move the user's read marker forward, never back.

    Without ``up_to_message_id`` the marker jumps to the channel's latest
    message. A marker at or behind the stored one is a no-op and publishes
    nothing.
    """
    channel = await assert_channel_access(
        user_ref, await uow.channels.get_by_id(channel_id), uow.members,
    )

    if up_to_message_id is not None:
        target = await uow.messages.get_by_id(up_to_message_id)
        if target is None or target.channel_id != channel_id:
            raise ValidationError("Read marker must reference a message in this channel")
        seq, message_id = target.seq, target.id
    else:
        latest = await uow.messages.latest_in_channel(channel_id)
        seq = latest.message.seq if latest else 0
        message_id = latest.message.id if latest else None

    state, advanced = await uow.read_state_w.advance(
        channel_id, user_ref, seq, message_id, datetime.now(timezone.utc),
    )
    if not advanced:
        return state

    await uow.commit()
    await fanout.publish_event(
        publisher,
        channel,
        ChannelRead(
            channel_id=channel_id,
            reader_ref=user_ref,
            read_at=state.last_read_at,
            last_read_message_id=state.last_read_message_id,
        ),
    )
    return state


async def unread_count(user_ref: UserRef, channel_id: UUID, uow: UnitOfWork) -> int:
    channel = await uow.channels.get_by_id(channel_id)
    await assert_channel_access(user_ref, channel, uow.members)
    return await uow.read_state.unread_count(user_ref, channel_id)


async def total_unread(user_ref: UserRef, uow: UnitOfWork) -> int:
    counts = await uow.read_state.unread_counts_for(user_ref)
    return sum(counts.values())
