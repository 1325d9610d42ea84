from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from team_chat.application.exceptions import ChannelRaceLost
from team_chat.domain.entities.channel import Channel
from team_chat.domain.value_objects.enums import ChannelType
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.mappers import channel as mapper
from team_chat.infrastructure.db.models.channel import ChannelModel
from team_chat.infrastructure.db.models.member import ChannelMemberModel


class ChannelReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, channel_id: UUID) -> Channel | None:
        result = await self._session.get(ChannelModel, channel_id)
        return mapper.model_to_entity(result) if result else None

    async def get_dm(self, p0: UserRef, p1: UserRef) -> Channel | None:
        stmt = select(ChannelModel).where(
            ChannelModel.type == ChannelType.DM.value,
            ChannelModel.dm_user_low == p0,
            ChannelModel.dm_user_high == p1,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def get_public_by_name(self, name: str) -> Channel | None:
        stmt = select(ChannelModel).where(
            ChannelModel.type == ChannelType.PUBLIC.value,
            ChannelModel.name == name,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_ref: UserRef) -> list[Channel]:
        stmt = (
            select(ChannelModel)
            .join(
                ChannelMemberModel,
                ChannelMemberModel.channel_id == ChannelModel.id,
            )
            .where(ChannelMemberModel.user_ref == user_ref)
            .order_by(ChannelModel.created_at, ChannelModel.id)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def lock_for_append(self, channel_id: UUID) -> Channel | None:
        # FOR NO KEY UPDATE: does not block FK checks from member/message inserts.
        stmt = (
            select(ChannelModel)
            .where(ChannelModel.id == channel_id)
            .with_for_update(key_share=True)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None


class ChannelWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert_public(self, channel: Channel) -> Channel:
        """Insert guarded by uq_channels_public_name."""
        stmt = (
            pg_insert(ChannelModel)
            .values(**mapper.entity_to_values(channel))
            .on_conflict_do_nothing(
                index_elements=["name"],
                index_where=text("type = 'public'"),
            )
            .returning(ChannelModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            raise ChannelRaceLost(f"Public channel already exists: {channel.name}")
        return mapper.model_to_entity(row)

    async def insert_dm(self, channel: Channel) -> Channel:
        """Insert guarded by uq_channels_dm_pair.

        ON CONFLICT DO NOTHING blocks on a concurrent uncommitted insert of
        the same pair and then yields no row if that insert committed.
        """
        stmt = (
            pg_insert(ChannelModel)
            .values(**mapper.entity_to_values(channel))
            .on_conflict_do_nothing(
                index_elements=["dm_user_low", "dm_user_high"],
                index_where=text("type = 'dm'"),
            )
            .returning(ChannelModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            raise ChannelRaceLost(f"DM pair already exists: {channel.name}")
        return mapper.model_to_entity(row)
