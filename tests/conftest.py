"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from team_chat.application.dto.message import MessagePage, MessageView, PageRequest
from team_chat.application.dto.principal import Principal
from team_chat.application.exceptions import ChannelRaceLost, ValidationError
from team_chat.domain.entities.channel import Channel
from team_chat.domain.entities.member import ChannelMember
from team_chat.domain.entities.message import Message
from team_chat.domain.entities.read_state import ReadState
from team_chat.domain.entities.user import User
from team_chat.domain.value_objects.cursor import decode_cursor, encode_cursor
from team_chat.domain.value_objects.enums import ChannelType
from team_chat.domain.value_objects.ids import InternalUserId, UserRef

ALICE = UserRef("u_alice")
BOB = UserRef("u_bob")
CAROL = UserRef("u_carol")


@pytest.fixture
def alice_principal() -> Principal:
    return Principal(subject=ALICE, roles=[])


def make_user(subject: str, name: str | None = None, *, user_id: int = 0) -> User:
    return User(
        id=InternalUserId(user_id or abs(hash(subject)) % 10_000),
        subject=UserRef(subject),
        name=name or subject.removeprefix("u_").title(),
        email=f"{subject}@example.com",
    )


def make_public_channel(name: str = "general", created_by: UserRef = ALICE) -> Channel:
    return Channel(
        id=uuid.uuid4(),
        type=ChannelType.PUBLIC,
        name=name,
        dm_participants=None,
        created_by=created_by,
        created_at=datetime.now(timezone.utc),
    )


def make_message(
    channel_id: UUID,
    sender_ref: UserRef = ALICE,
    content: str = "hello",
    *,
    seq: int = 0,
    reply_to_id: UUID | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        seq=seq,
        channel_id=channel_id,
        sender_ref=sender_ref,
        content=content,
        reply_to_id=reply_to_id,
        client_msg_id=uuid.uuid4(),
        created_at=datetime.now(timezone.utc),
    )


@dataclass
class FakeUserReader:
    _users: dict[str, User] = field(default_factory=dict)

    async def get_by_subject(self, subject: str) -> User | None:
        user = self._users.get(subject)
        return user if user and user.is_active else None

    async def get_many(self, refs: Iterable[UserRef]) -> dict[UserRef, User]:
        found = {}
        for ref in refs:
            user = await self.get_by_subject(ref)
            if user is not None:
                found[ref] = user
        return found

    async def list_active(self) -> list[User]:
        active = [u for u in self._users.values() if u.is_active]
        return sorted(active, key=lambda u: (u.name, u.subject))


@dataclass
class FakeMemberReader:
    _members: list[ChannelMember] = field(default_factory=list)

    async def is_member(self, channel_id: UUID, user_ref: UserRef) -> bool:
        return any(
            m.channel_id == channel_id and m.user_ref == user_ref for m in self._members
        )

    async def list_members(self, channel_id: UUID) -> list[ChannelMember]:
        return [m for m in self._members if m.channel_id == channel_id]


@dataclass
class FakeMemberWriter:
    _reader: FakeMemberReader

    async def add(self, member: ChannelMember) -> None:
        if not await self._reader.is_member(member.channel_id, member.user_ref):
            self._reader._members.append(member)


@dataclass
class FakeChannelReader:
    _members: FakeMemberReader
    _store: dict[UUID, Channel] = field(default_factory=dict)
    locked: list[UUID] = field(default_factory=list)

    async def get_by_id(self, channel_id: UUID) -> Channel | None:
        return self._store.get(channel_id)

    async def lock_for_append(self, channel_id: UUID) -> Channel | None:
        self.locked.append(channel_id)
        return self._store.get(channel_id)

    async def get_dm(self, p0: UserRef, p1: UserRef) -> Channel | None:
        for c in self._store.values():
            if c.is_dm and c.dm_participants == (p0, p1):
                return c
        return None

    async def get_public_by_name(self, name: str) -> Channel | None:
        for c in self._store.values():
            if not c.is_dm and c.name == name:
                return c
        return None

    async def list_for_user(self, user_ref: UserRef) -> list[Channel]:
        ids = [m.channel_id for m in self._members._members if m.user_ref == user_ref]
        return [self._store[i] for i in ids if i in self._store]


@dataclass
class FakeChannelWriter:
    _reader: FakeChannelReader
    insert_calls: int = 0

    async def insert_public(self, channel: Channel) -> Channel:
        self.insert_calls += 1
        await asyncio.sleep(0)
        if await self._reader.get_public_by_name(channel.name) is not None:
            raise ChannelRaceLost(channel.name)
        self._reader._store[channel.id] = channel
        return channel

    async def insert_dm(self, channel: Channel) -> Channel:
        self.insert_calls += 1
        # Suspend like a real round-trip so concurrent callers interleave.
        await asyncio.sleep(0)
        assert channel.dm_participants is not None
        if await self._reader.get_dm(*channel.dm_participants) is not None:
            raise ChannelRaceLost(channel.name)
        self._reader._store[channel.id] = channel
        return channel


@dataclass
class FakeMessageReader:
    _users: FakeUserReader
    _messages: list[Message] = field(default_factory=list)

    async def _view(self, message: Message) -> MessageView:
        return MessageView(
            message=message,
            sender=await self._users.get_by_subject(message.sender_ref),
        )

    async def get_by_id(self, message_id: UUID) -> Message | None:
        return next((m for m in self._messages if m.id == message_id), None)

    async def get_views(self, message_ids: Iterable[UUID]) -> dict[UUID, MessageView]:
        wanted = set(message_ids)
        return {m.id: await self._view(m) for m in self._messages if m.id in wanted}

    async def list_messages(self, channel_id: UUID, page: PageRequest) -> MessagePage:
        try:
            bound = decode_cursor(page.cursor) if page.cursor else None
        except ValueError as exc:
            raise ValidationError("Invalid cursor") from exc
        rows = sorted(
            (m for m in self._messages if m.channel_id == channel_id),
            key=lambda m: m.seq,
        )
        if page.direction == "after":
            if bound is not None:
                rows = [m for m in rows if m.seq > bound]
            rows = rows[: page.limit]
            items = [await self._view(m) for m in rows]
            cursor = encode_cursor(rows[-1].seq) if rows else page.cursor
            return MessagePage(items=items, next_cursor=cursor)

        if bound is not None:
            rows = [m for m in rows if m.seq < bound]
        rows = rows[-page.limit:]
        items = [await self._view(m) for m in rows]
        cursor = encode_cursor(rows[0].seq) if len(rows) == page.limit else None
        return MessagePage(items=items, next_cursor=cursor)

    async def latest_in_channel(self, channel_id: UUID) -> MessageView | None:
        rows = [m for m in self._messages if m.channel_id == channel_id]
        if not rows:
            return None
        return await self._view(max(rows, key=lambda m: m.seq))


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    _seq: int = 0

    def add_existing(self, message: Message) -> Message:
        """Insert a message directly, assigning the next seq."""
        self._seq += 1
        stored = replace(
            message,
            seq=self._seq,
            created_at=message.created_at + timedelta(microseconds=self._seq),
        )
        self._reader._messages.append(stored)
        return stored

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        for m in self._reader._messages:
            if (
                m.channel_id == message.channel_id
                and m.sender_ref == message.sender_ref
                and m.client_msg_id == message.client_msg_id
            ):
                return m, False
        return self.add_existing(message), True


@dataclass
class FakeReadStateReader:
    _messages: FakeMessageReader
    _members: FakeMemberReader
    _states: dict[tuple[UUID, str], ReadState] = field(default_factory=dict)

    async def get(self, channel_id: UUID, user_ref: UserRef) -> ReadState | None:
        return self._states.get((channel_id, user_ref))

    async def unread_count(self, user_ref: UserRef, channel_id: UUID) -> int:
        state = self._states.get((channel_id, user_ref))
        marker = state.last_read_seq if state else 0
        return sum(
            1
            for m in self._messages._messages
            if m.channel_id == channel_id and m.sender_ref != user_ref and m.seq > marker
        )

    async def unread_counts_for(self, user_ref: UserRef) -> dict[UUID, int]:
        return {
            m.channel_id: await self.unread_count(user_ref, m.channel_id)
            for m in self._members._members
            if m.user_ref == user_ref
        }


@dataclass
class FakeReadStateWriter:
    _reader: FakeReadStateReader

    async def advance(
        self,
        channel_id: UUID,
        user_ref: UserRef,
        seq: int,
        message_id: UUID | None,
        read_at: datetime,
    ) -> tuple[ReadState, bool]:
        key = (channel_id, user_ref)
        current = self._reader._states.get(key)
        if current is not None and current.last_read_seq >= seq:
            return current, False
        state = ReadState(
            channel_id=channel_id,
            user_ref=user_ref,
            last_read_seq=seq,
            last_read_message_id=message_id,
            last_read_at=read_at,
        )
        self._reader._states[key] = state
        return state, True


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""

    users: FakeUserReader = field(default_factory=FakeUserReader)
    members: FakeMemberReader = field(default_factory=FakeMemberReader)
    commits: int = 0

    def __post_init__(self) -> None:
        self.members_w = FakeMemberWriter(self.members)
        self.channels = FakeChannelReader(self.members)
        self.channels_w = FakeChannelWriter(self.channels)
        self.messages = FakeMessageReader(self.users)
        self.messages_w = FakeMessageWriter(self.messages)
        self.read_state = FakeReadStateReader(self.messages, self.members)
        self.read_state_w = FakeReadStateWriter(self.read_state)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass

    # -- seeding helpers ---------------------------------------------------

    def add_user(self, subject: str, name: str | None = None) -> User:
        user = make_user(subject, name)
        self.users._users[user.subject] = user
        return user

    def add_channel(self, channel: Channel, *members: UserRef) -> Channel:
        self.channels._store[channel.id] = channel
        for ref in members:
            self.members._members.append(
                ChannelMember(channel_id=channel.id, user_ref=ref, joined_at=channel.created_at)
            )
        return channel


@dataclass
class FakePublisher:
    published: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)
    fail: bool = False

    async def publish(self, topic: str, event_type: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append((topic, event_type, payload))

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [p for _, t, p in self.published if t == event_type]


@dataclass
class FakeNotifier:
    calls: list[tuple[UUID, list[UserRef]]] = field(default_factory=list)
    fail: bool = False

    async def notify(self, channel: Channel, message: Message, recipients: list[UserRef]) -> None:
        if self.fail:
            raise RuntimeError("push gateway unavailable")
        self.calls.append((message.id, recipients))


@pytest.fixture
def uow() -> FakeUoW:
    uow = FakeUoW()
    for subject in (ALICE, BOB, CAROL):
        uow.add_user(subject)
    return uow


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def general(uow: FakeUoW) -> Channel:
    return uow.add_channel(make_public_channel("general"), ALICE, BOB, CAROL)
