from __future__ import annotations

import asyncio
import uuid

import pytest

from team_chat.application.exceptions import (
    ChannelRaceLost,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from team_chat.services import channel_service
from tests.conftest import ALICE, BOB, CAROL, make_message, make_public_channel


@pytest.mark.asyncio
async def test_first_contact_creates_one_dm_with_both_members(uow):
    channel = await channel_service.find_or_create_direct_channel(ALICE, BOB, uow)

    assert channel.is_dm
    assert channel.dm_participants == (ALICE, BOB)
    assert channel.name == "dm:u_alice:u_bob"
    assert await uow.members.is_member(channel.id, ALICE)
    assert await uow.members.is_member(channel.id, BOB)
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_dm_lookup_is_order_independent(uow):
    first = await channel_service.find_or_create_direct_channel(BOB, ALICE, uow)
    second = await channel_service.find_or_create_direct_channel(ALICE, BOB, uow)

    assert first.id == second.id
    assert first.dm_participants == (ALICE, BOB)
    assert uow.channels_w.insert_calls == 1


@pytest.mark.asyncio
async def test_concurrent_first_contact_in_both_orders_yields_one_channel(uow):
    results = await asyncio.gather(
        channel_service.find_or_create_direct_channel(ALICE, BOB, uow),
        channel_service.find_or_create_direct_channel(BOB, ALICE, uow),
        channel_service.find_or_create_direct_channel(ALICE, BOB, uow),
    )

    assert len({c.id for c in results}) == 1
    dms = [c for c in uow.channels._store.values() if c.is_dm]
    assert len(dms) == 1
    assert len(await uow.members.list_members(dms[0].id)) == 2


@pytest.mark.asyncio
async def test_self_dm_rejected(uow):
    with pytest.raises(ValidationError):
        await channel_service.find_or_create_direct_channel(ALICE, ALICE, uow)


@pytest.mark.asyncio
async def test_dm_gives_up_after_repeated_races(uow, monkeypatch):
    async def always_lose(channel):
        raise ChannelRaceLost(channel.name)

    async def never_found(p0, p1):
        return None

    monkeypatch.setattr(uow.channels_w, "insert_dm", always_lose)
    monkeypatch.setattr(uow.channels, "get_dm", never_found)

    with pytest.raises(ConflictError) as excinfo:
        await channel_service.find_or_create_direct_channel(ALICE, BOB, uow)
    assert excinfo.type is ConflictError


@pytest.mark.asyncio
async def test_open_direct_channel_unknown_peer(uow):
    with pytest.raises(NotFoundError):
        await channel_service.open_direct_channel(ALICE, "u_nobody", uow)


def test_topic_for_public_channel_is_reproducible():
    channel = make_public_channel()
    assert channel_service.resolve_topic_for(channel) == f"chat:channel:{channel.id}"


@pytest.mark.asyncio
async def test_provision_public_channel_is_idempotent_by_name(uow):
    created, was_created = await channel_service.provision_public_channel(" Random ", ALICE, uow)
    again, created_again = await channel_service.provision_public_channel("random", BOB, uow)

    assert was_created is True
    assert created_again is False
    assert again.id == created.id
    assert created.name == "random"
    assert await uow.members.is_member(created.id, BOB)


@pytest.mark.asyncio
async def test_concurrent_provision_of_same_name_yields_one_channel(uow):
    results = await asyncio.gather(
        channel_service.provision_public_channel("launch", ALICE, uow),
        channel_service.provision_public_channel("Launch", BOB, uow),
    )

    assert uow.channels_w.insert_calls == 2
    assert sorted(created for _, created in results) == [False, True]
    assert len({c.id for c, _ in results}) == 1
    channel = results[0][0]
    assert await uow.members.is_member(channel.id, ALICE)
    assert await uow.members.is_member(channel.id, BOB)


@pytest.mark.asyncio
async def test_provision_race_without_winner_is_conflict(uow, monkeypatch):
    async def always_lose(channel):
        raise ChannelRaceLost(channel.name)

    monkeypatch.setattr(uow.channels_w, "insert_public", always_lose)

    with pytest.raises(ConflictError):
        await channel_service.provision_public_channel("ghost", ALICE, uow)


@pytest.mark.asyncio
async def test_provision_rejects_reserved_names(uow):
    with pytest.raises(ValidationError):
        await channel_service.provision_public_channel("dm:u_alice:u_bob", ALICE, uow)
    with pytest.raises(ValidationError):
        await channel_service.provision_public_channel("   ", ALICE, uow)


@pytest.mark.asyncio
async def test_join_public_channel(uow):
    channel = uow.add_channel(make_public_channel("design"), ALICE)

    await channel_service.join_channel(CAROL, channel.id, uow)
    await channel_service.join_channel(CAROL, channel.id, uow)

    members = await uow.members.list_members(channel.id)
    assert sorted(m.user_ref for m in members) == [ALICE, CAROL]


@pytest.mark.asyncio
async def test_join_dm_forbidden(uow):
    dm = await channel_service.find_or_create_direct_channel(ALICE, BOB, uow)
    with pytest.raises(ForbiddenError):
        await channel_service.join_channel(CAROL, dm.id, uow)


@pytest.mark.asyncio
async def test_get_channel_requires_membership(uow, general):
    assert (await channel_service.get_channel(general.id, ALICE, uow)).id == general.id

    private = uow.add_channel(make_public_channel("ops"), BOB)
    with pytest.raises(ForbiddenError):
        await channel_service.get_channel(private.id, ALICE, uow)
    with pytest.raises(NotFoundError):
        await channel_service.get_channel(uuid.uuid4(), ALICE, uow)


@pytest.mark.asyncio
async def test_list_channels_annotates_unread_and_peer(uow, general):
    dm = await channel_service.find_or_create_direct_channel(ALICE, BOB, uow)
    uow.messages_w.add_existing(make_message(general.id, BOB, "standup?"))
    uow.messages_w.add_existing(make_message(general.id, ALICE, "mine"))
    uow.messages_w.add_existing(make_message(dm.id, BOB, "ping"))

    summaries = await channel_service.list_channels_for(ALICE, uow)

    by_id = {s.channel.id: s for s in summaries}
    assert by_id[general.id].unread_count == 1
    assert by_id[dm.id].unread_count == 1
    assert by_id[dm.id].other_user is not None
    assert by_id[dm.id].other_user.subject == BOB
    assert by_id[general.id].other_user is None
    assert by_id[dm.id].last_message.message.content == "ping"
    # Most recent activity first
    assert summaries[0].channel.id == dm.id


@pytest.mark.asyncio
async def test_list_channels_dm_peer_unresolvable(uow):
    dm = await channel_service.find_or_create_direct_channel(ALICE, BOB, uow)
    del uow.users._users[BOB]

    summaries = await channel_service.list_channels_for(ALICE, uow)

    assert [s.channel.id for s in summaries] == [dm.id]
    assert summaries[0].other_user is None
