from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from team_chat.domain.entities.user import User
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.mappers import user as mapper
from team_chat.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_subject(self, subject: str) -> User | None:
        stmt = select(UserModel).where(
            UserModel.subject == subject,
            UserModel.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def get_many(self, refs: Iterable[UserRef]) -> dict[UserRef, User]:
        refs = list(refs)
        if not refs:
            return {}
        stmt = select(UserModel).where(
            UserModel.subject.in_(refs),
            UserModel.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        users = [mapper.model_to_entity(m) for m in result.scalars().all()]
        return {u.subject: u for u in users}

    async def list_active(self) -> list[User]:
        stmt = (
            select(UserModel)
            .where(UserModel.is_active.is_(True))
            .order_by(UserModel.name, UserModel.subject)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]
