from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from uuid import UUID

from team_chat.application.dto.channel import ChannelSummary
from team_chat.application.exceptions import (
    ChannelRaceLost,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from team_chat.application.policies.permissions import assert_channel_access
from team_chat.application.uow import UnitOfWork
from team_chat.config import settings
from team_chat.domain.entities.channel import Channel
from team_chat.domain.entities.member import ChannelMember
from team_chat.domain.value_objects.channel_key import canonical_pair, dm_key
from team_chat.domain.value_objects.enums import ChannelType
from team_chat.domain.value_objects.ids import UserRef
from team_chat.services import identity_service

logger = logging.getLogger(__name__)


async def find_or_create_direct_channel(
    user_a: UserRef,
    user_b: UserRef,
    uow: UnitOfWork,
) -> Channel:
    """Return the single DM channel for the unordered pair {user_a, user_b}.

    Lookup and insert both use the sorted pair. Two callers racing on first
    contact are serialized by the unique pair index: the loser gets
    ChannelRaceLost from the repository and re-reads the winner.
    """
    if user_a == user_b:
        raise ValidationError("Cannot open a direct channel with yourself")

    p0, p1 = canonical_pair(user_a, user_b)

    for attempt in range(1, settings.DM_CREATE_MAX_ATTEMPTS + 1):
        existing = await uow.channels.get_dm(p0, p1)
        if existing is not None:
            return existing

        now = datetime.now(timezone.utc)
        channel = Channel(
            id=uuid.uuid4(),
            type=ChannelType.DM,
            name=dm_key(p0, p1),
            dm_participants=(p0, p1),
            created_by=user_a,
            created_at=now,
        )
        try:
            channel = await uow.channels_w.insert_dm(channel)
        except ChannelRaceLost:
            logger.debug("DM create race lost for %s (attempt %d)", channel.name, attempt)
            continue

        for ref in (p0, p1):
            await uow.members_w.add(
                ChannelMember(channel_id=channel.id, user_ref=ref, joined_at=now)
            )
        await uow.commit()
        logger.info("Created DM channel %s (%s)", channel.id, channel.name)
        return channel

    raise ConflictError("Could not resolve direct channel, please retry")


def resolve_topic_for(channel: Channel) -> str:
    return channel.topic


async def provision_public_channel(
    name: str,
    created_by: UserRef,
    uow: UnitOfWork,
) -> tuple[Channel, bool]:
    """Return the public channel called ``name``, creating it if needed.

    Returns (channel, created). The creator always ends up a member. A
    concurrent create of the same name loses on the unique name index and
    joins the winner's channel instead.
    """
    name = name.strip().lower()
    if not name:
        raise ValidationError("Channel name must not be empty")
    if name.startswith("dm:"):
        raise ValidationError("Channel name is reserved")

    existing = await uow.channels.get_public_by_name(name)
    if existing is not None:
        await join_channel(created_by, existing.id, uow)
        return existing, False

    now = datetime.now(timezone.utc)
    try:
        channel = await uow.channels_w.insert_public(
            Channel(
                id=uuid.uuid4(),
                type=ChannelType.PUBLIC,
                name=name,
                dm_participants=None,
                created_by=created_by,
                created_at=now,
            )
        )
    except ChannelRaceLost:
        logger.debug("Public channel create race lost for #%s", name)
        existing = await uow.channels.get_public_by_name(name)
        if existing is None:
            raise ConflictError("Could not resolve channel, please retry") from None
        await join_channel(created_by, existing.id, uow)
        return existing, False

    await uow.members_w.add(
        ChannelMember(channel_id=channel.id, user_ref=created_by, joined_at=now)
    )
    await uow.commit()
    logger.info("Provisioned public channel #%s (%s)", name, channel.id)
    return channel, True


async def join_channel(user_ref: UserRef, channel_id: UUID, uow: UnitOfWork) -> Channel:
    channel = await uow.channels.get_by_id(channel_id)
    if channel is None:
        raise NotFoundError("Channel not found")
    if channel.is_dm:
        raise ForbiddenError("Direct channels cannot be joined")

    if not await uow.members.is_member(channel.id, user_ref):
        await uow.members_w.add(
            ChannelMember(
                channel_id=channel.id,
                user_ref=user_ref,
                joined_at=datetime.now(timezone.utc),
            )
        )
        await uow.commit()
    return channel


async def get_channel(channel_id: UUID, user_ref: UserRef, uow: UnitOfWork) -> Channel:
    channel = await uow.channels.get_by_id(channel_id)
    return await assert_channel_access(user_ref, channel, uow.members)


async def list_channels_for(user_ref: UserRef, uow: UnitOfWork) -> list[ChannelSummary]:
    """Every channel the user belongs to, with unread counts.

    Unread counts come from the same per-channel map that total_unread sums,
    keyed by the channel's own id.
    """
    channels = await uow.channels.list_for_user(user_ref)
    unread = await uow.read_state.unread_counts_for(user_ref)

    peers = {
        peer
        for c in channels
        if (peer := c.other_participant(user_ref)) is not None
    }
    profiles = await identity_service.describe(peers, uow.users) if peers else {}

    summaries: list[ChannelSummary] = []
    for channel in channels:
        peer = channel.other_participant(user_ref)
        summaries.append(
            ChannelSummary(
                channel=channel,
                unread_count=unread.get(channel.id, 0),
                last_message=await uow.messages.latest_in_channel(channel.id),
                other_user=profiles.get(peer) if peer is not None else None,
            )
        )

    summaries.sort(
        key=lambda s: (
            s.last_message.message.created_at if s.last_message else s.channel.created_at
        ),
        reverse=True,
    )
    return summaries


async def open_direct_channel(me: UserRef, peer_ref: str, uow: UnitOfWork) -> Channel:
    """find_or_create_direct_channel for an arbitrary peer string from a client."""
    peer = await uow.users.get_by_subject(peer_ref)
    if peer is None:
        raise NotFoundError(f"Unknown user: {peer_ref}")
    return await find_or_create_direct_channel(me, peer.subject, uow)
