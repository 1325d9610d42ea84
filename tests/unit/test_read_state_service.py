from __future__ import annotations

import uuid

import pytest

from team_chat.application.dto.message import SendMessageDTO
from team_chat.application.exceptions import ForbiddenError, ValidationError
from team_chat.services import channel_service, message_service, read_state_service
from tests.conftest import ALICE, BOB, make_message, make_public_channel


async def _send(uow, publisher, channel_id, sender, text="hi"):
    view, _ = await message_service.send_message(
        SendMessageDTO(client_msg_id=uuid.uuid4(), content=text, channel_id=channel_id),
        sender, uow, publisher,
    )
    return view.message


@pytest.mark.asyncio
async def test_unread_badge_clears_and_returns(uow, publisher, general):
    for i in range(3):
        await _send(uow, publisher, general.id, BOB, f"msg {i}")
    assert await read_state_service.unread_count(ALICE, general.id, uow) == 3

    await read_state_service.mark_read(ALICE, general.id, uow, publisher)
    assert await read_state_service.unread_count(ALICE, general.id, uow) == 0

    await _send(uow, publisher, general.id, BOB, "one more")
    assert await read_state_service.unread_count(ALICE, general.id, uow) == 1


@pytest.mark.asyncio
async def test_own_messages_never_unread(uow, publisher, general):
    await _send(uow, publisher, general.id, ALICE)
    await _send(uow, publisher, general.id, ALICE)

    assert await read_state_service.unread_count(ALICE, general.id, uow) == 0
    assert await read_state_service.unread_count(BOB, general.id, uow) == 2


@pytest.mark.asyncio
async def test_mark_read_publishes_channel_read(uow, publisher, general):
    last = await _send(uow, publisher, general.id, BOB)
    publisher.published.clear()

    state = await read_state_service.mark_read(ALICE, general.id, uow, publisher)

    assert state.last_read_message_id == last.id
    [payload] = publisher.of_type("channel.read")
    assert payload["reader_ref"] == ALICE
    assert payload["last_read_message_id"] == str(last.id)
    assert payload["channel_id"] == str(general.id)


@pytest.mark.asyncio
async def test_read_marker_never_moves_backwards(uow, publisher, general):
    first = await _send(uow, publisher, general.id, BOB, "first")
    second = await _send(uow, publisher, general.id, BOB, "second")
    await read_state_service.mark_read(ALICE, general.id, uow, publisher, second.id)
    publisher.published.clear()
    commits = uow.commits

    state = await read_state_service.mark_read(ALICE, general.id, uow, publisher, first.id)

    assert state.last_read_message_id == second.id
    assert publisher.published == []
    assert uow.commits == commits
    assert await read_state_service.unread_count(ALICE, general.id, uow) == 0


@pytest.mark.asyncio
async def test_repeated_mark_read_is_noop(uow, publisher, general):
    await _send(uow, publisher, general.id, BOB)
    await read_state_service.mark_read(ALICE, general.id, uow, publisher)
    publisher.published.clear()

    await read_state_service.mark_read(ALICE, general.id, uow, publisher)

    assert publisher.published == []


@pytest.mark.asyncio
async def test_partial_read_leaves_later_messages_unread(uow, publisher, general):
    first = await _send(uow, publisher, general.id, BOB, "first")
    await _send(uow, publisher, general.id, BOB, "second")

    await read_state_service.mark_read(ALICE, general.id, uow, publisher, first.id)

    assert await read_state_service.unread_count(ALICE, general.id, uow) == 1


@pytest.mark.asyncio
async def test_mark_read_with_foreign_message_rejected(uow, publisher, general):
    other = uow.add_channel(make_public_channel("random"), ALICE, BOB)
    foreign = uow.messages_w.add_existing(make_message(other.id, BOB))

    with pytest.raises(ValidationError):
        await read_state_service.mark_read(ALICE, general.id, uow, publisher, foreign.id)


@pytest.mark.asyncio
async def test_mark_read_requires_membership(uow, publisher):
    channel = uow.add_channel(make_public_channel("ops"), BOB)
    with pytest.raises(ForbiddenError):
        await read_state_service.mark_read(ALICE, channel.id, uow, publisher)


@pytest.mark.asyncio
async def test_mark_read_survives_broadcast_failure(uow, publisher, general):
    await _send(uow, publisher, general.id, BOB)
    publisher.fail = True

    await read_state_service.mark_read(ALICE, general.id, uow, publisher)

    assert await read_state_service.unread_count(ALICE, general.id, uow) == 0


@pytest.mark.asyncio
async def test_total_unread_matches_channel_list(uow, publisher, general):
    dm = await channel_service.find_or_create_direct_channel(ALICE, BOB, uow)
    await _send(uow, publisher, general.id, BOB)
    await _send(uow, publisher, dm.id, BOB)
    await _send(uow, publisher, dm.id, BOB)

    total = await read_state_service.total_unread(ALICE, uow)
    summaries = await channel_service.list_channels_for(ALICE, uow)

    assert total == 3
    assert total == sum(s.unread_count for s in summaries)
