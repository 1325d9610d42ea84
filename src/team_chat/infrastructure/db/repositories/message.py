from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import Select, and_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from team_chat.application.dto.message import MessagePage, MessageView, PageRequest
from team_chat.application.exceptions import ValidationError
from team_chat.domain.entities.message import Message
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.mappers import message as mapper
from team_chat.infrastructure.db.models.message import MessageModel
from team_chat.infrastructure.db.models.user import UserModel
from team_chat.domain.value_objects.cursor import decode_cursor, encode_cursor


def _with_sender() -> Select:
    # Outer join: a message whose sender no longer resolves is still returned.
    return select(MessageModel, UserModel).outerjoin(
        UserModel,
        and_(
            UserModel.subject == MessageModel.sender_ref,
            UserModel.is_active.is_(True),
        ),
    )


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: UUID) -> Message | None:
        result = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(result) if result else None

    async def get_views(self, message_ids: Iterable[UUID]) -> dict[UUID, MessageView]:
        ids = list(message_ids)
        if not ids:
            return {}
        result = await self._session.execute(
            _with_sender().where(MessageModel.id.in_(ids))
        )
        return {m.id: mapper.row_to_view(m, u) for m, u in result.all()}

    async def list_messages(self, channel_id: UUID, page: PageRequest) -> MessagePage:
        bound: int | None = None
        if page.cursor:
            try:
                bound = decode_cursor(page.cursor)
            except ValueError as exc:
                raise ValidationError("Invalid cursor") from exc

        stmt = _with_sender().where(MessageModel.channel_id == channel_id)
        if page.direction == "after":
            if bound is not None:
                stmt = stmt.where(MessageModel.seq > bound)
            stmt = stmt.order_by(MessageModel.seq.asc())
        else:
            if bound is not None:
                stmt = stmt.where(MessageModel.seq < bound)
            stmt = stmt.order_by(MessageModel.seq.desc())
        stmt = stmt.limit(page.limit)

        result = await self._session.execute(stmt)
        items = [mapper.row_to_view(m, u) for m, u in result.all()]

        if page.direction == "after":
            next_cursor = encode_cursor(items[-1].message.seq) if items else page.cursor
            return MessagePage(items=items, next_cursor=next_cursor)

        items.reverse()
        next_cursor = (
            encode_cursor(items[0].message.seq) if len(items) == page.limit else None
        )
        return MessagePage(items=items, next_cursor=next_cursor)

    async def latest_in_channel(self, channel_id: UUID) -> MessageView | None:
        stmt = (
            _with_sender()
            .where(MessageModel.channel_id == channel_id)
            .order_by(MessageModel.seq.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.first()
        return mapper.row_to_view(row[0], row[1]) if row else None


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message idempotently. Returns (message, created_flag)."""
        stmt = (
            pg_insert(MessageModel)
            .values(**mapper.entity_to_values(message))
            .on_conflict_do_nothing(constraint="uq_message_idempotency")
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Conflict — fetch existing
        existing = await self.get_by_client_msg_id(
            message.channel_id, message.sender_ref, message.client_msg_id,
        )
        assert existing is not None
        return existing, False

    async def get_by_client_msg_id(
        self,
        channel_id: UUID,
        sender_ref: UserRef,
        client_msg_id: UUID,
    ) -> Message | None:
        stmt = select(MessageModel).where(
            MessageModel.channel_id == channel_id,
            MessageModel.sender_ref == sender_ref,
            MessageModel.client_msg_id == client_msg_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None
