from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from team_chat.domain.entities.read_state import ReadState
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.mappers import read_state as mapper
from team_chat.infrastructure.db.models.member import ChannelMemberModel
from team_chat.infrastructure.db.models.message import MessageModel
from team_chat.infrastructure.db.models.read_state import ReadStateModel


class ReadStateReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, channel_id: UUID, user_ref: UserRef) -> ReadState | None:
        stmt = select(ReadStateModel).where(
            ReadStateModel.channel_id == channel_id,
            ReadStateModel.user_ref == user_ref,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def unread_count(self, user_ref: UserRef, channel_id: UUID) -> int:
        marker = (
            select(ReadStateModel.last_read_seq)
            .where(
                ReadStateModel.channel_id == channel_id,
                ReadStateModel.user_ref == user_ref,
            )
            .scalar_subquery()
        )
        stmt = select(func.count(MessageModel.id)).where(
            MessageModel.channel_id == channel_id,
            MessageModel.sender_ref != user_ref,
            MessageModel.seq > func.coalesce(marker, 0),
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def unread_counts_for(self, user_ref: UserRef) -> dict[UUID, int]:
        stmt = (
            select(ChannelMemberModel.channel_id, func.count(MessageModel.id))
            .select_from(ChannelMemberModel)
            .outerjoin(
                ReadStateModel,
                and_(
                    ReadStateModel.channel_id == ChannelMemberModel.channel_id,
                    ReadStateModel.user_ref == ChannelMemberModel.user_ref,
                ),
            )
            .outerjoin(
                MessageModel,
                and_(
                    MessageModel.channel_id == ChannelMemberModel.channel_id,
                    MessageModel.sender_ref != user_ref,
                    MessageModel.seq > func.coalesce(ReadStateModel.last_read_seq, 0),
                ),
            )
            .where(ChannelMemberModel.user_ref == user_ref)
            .group_by(ChannelMemberModel.channel_id)
        )
        result = await self._session.execute(stmt)
        return {channel_id: int(count) for channel_id, count in result.all()}


class ReadStateWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def advance(
        self,
        channel_id: UUID,
        user_ref: UserRef,
        seq: int,
        message_id: UUID | None,
        read_at: datetime,
    ) -> tuple[ReadState, bool]:
        insert = pg_insert(ReadStateModel).values(
            channel_id=channel_id,
            user_ref=user_ref,
            last_read_seq=seq,
            last_read_message_id=message_id,
            last_read_at=read_at,
        )
        stmt = (
            insert.on_conflict_do_update(
                constraint="uq_read_state_member",
                set_={
                    "last_read_seq": insert.excluded.last_read_seq,
                    "last_read_message_id": insert.excluded.last_read_message_id,
                    "last_read_at": insert.excluded.last_read_at,
                },
                # Only ever move forward
                where=ReadStateModel.last_read_seq < insert.excluded.last_read_seq,
            )
            .returning(ReadStateModel)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            return mapper.model_to_entity(row), True

        existing = await self.get_existing(channel_id, user_ref)
        assert existing is not None
        return existing, False

    async def get_existing(self, channel_id: UUID, user_ref: UserRef) -> ReadState | None:
        return await ReadStateReaderRepo(self._session).get(channel_id, user_ref)
