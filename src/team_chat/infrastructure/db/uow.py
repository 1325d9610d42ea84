from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from team_chat.infrastructure.db.repositories.channel import (
    ChannelReaderRepo,
    ChannelWriterRepo,
)
from team_chat.infrastructure.db.repositories.member import (
    MemberReaderRepo,
    MemberWriterRepo,
)
from team_chat.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
)
from team_chat.infrastructure.db.repositories.read_state import (
    ReadStateReaderRepo,
    ReadStateWriterRepo,
)
from team_chat.infrastructure.db.repositories.user import UserReaderRepo
from team_chat.infrastructure.db.session import AsyncSessionLocal


class SqlAlchemyUoW:
    """Unit of Work over one AsyncSession.

    Services commit explicitly; anything left uncommitted when the scope
    exits is rolled back by the session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.users = UserReaderRepo(session)
        self.channels = ChannelReaderRepo(session)
        self.channels_w = ChannelWriterRepo(session)
        self.members = MemberReaderRepo(session)
        self.members_w = MemberWriterRepo(session)
        self.messages = MessageReaderRepo(session)
        self.messages_w = MessageWriterRepo(session)
        self.read_state = ReadStateReaderRepo(session)
        self.read_state_w = ReadStateWriterRepo(session)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()


@asynccontextmanager
async def uow_scope() -> AsyncIterator[SqlAlchemyUoW]:
    """Fresh session + UoW for code running outside a request (WS frames, scripts)."""
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUoW(session)
