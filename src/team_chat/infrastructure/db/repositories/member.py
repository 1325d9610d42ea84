from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from team_chat.domain.entities.member import ChannelMember
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.mappers import member as mapper
from team_chat.infrastructure.db.models.member import ChannelMemberModel


class MemberReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_member(self, channel_id: UUID, user_ref: UserRef) -> bool:
        stmt = (
            select(ChannelMemberModel.id)
            .where(
                ChannelMemberModel.channel_id == channel_id,
                ChannelMemberModel.user_ref == user_ref,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_members(self, channel_id: UUID) -> list[ChannelMember]:
        stmt = select(ChannelMemberModel).where(
            ChannelMemberModel.channel_id == channel_id
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MemberWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, member: ChannelMember) -> None:
        stmt = (
            pg_insert(ChannelMemberModel)
            .values(
                channel_id=member.channel_id,
                user_ref=member.user_ref,
                joined_at=member.joined_at,
            )
            .on_conflict_do_nothing(constraint="uq_channel_member")
        )
        await self._session.execute(stmt)
