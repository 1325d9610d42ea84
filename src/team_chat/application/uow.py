from __future__ import annotations

from typing import Protocol

from team_chat.application.repositories.channel import ChannelReader, ChannelWriter
from team_chat.application.repositories.member import MemberReader, MemberWriter
from team_chat.application.repositories.message import MessageReader, MessageWriter
from team_chat.application.repositories.read_state import (
    ReadStateReader,
    ReadStateWriter,
)
from team_chat.application.repositories.user import UserReader


class UnitOfWork(Protocol):
    users: UserReader
    channels: ChannelReader
    channels_w: ChannelWriter
    members: MemberReader
    members_w: MemberWriter
    messages: MessageReader
    messages_w: MessageWriter
    read_state: ReadStateReader
    read_state_w: ReadStateWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
