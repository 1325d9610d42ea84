from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from team_chat.api.deps import CurrentUser, PublisherDep, UoWDep
from team_chat.api.v1.schemas.common import CountResponse
from team_chat.api.v1.schemas.message import MarkReadRequest, ReadStateResponse
from team_chat.services import read_state_service

router = APIRouter(prefix="/api/v1/chat", tags=["read-state"])


@router.post("/channels/{channel_id}/read", response_model=ReadStateResponse)
async def mark_channel_read(
    channel_id: UUID,
    me: CurrentUser,
    uow: UoWDep,
    publisher: PublisherDep,
    body: MarkReadRequest | None = None,
) -> ReadStateResponse:
    state = await read_state_service.mark_read(
        me, channel_id, uow, publisher,
        up_to_message_id=body.up_to_message_id if body else None,
    )
    return ReadStateResponse.model_validate(state, from_attributes=True)


@router.get("/channels/{channel_id}/unread", response_model=CountResponse)
async def channel_unread(channel_id: UUID, me: CurrentUser, uow: UoWDep) -> CountResponse:
    return CountResponse(count=await read_state_service.unread_count(me, channel_id, uow))


@router.get("/unread", response_model=CountResponse)
async def total_unread(me: CurrentUser, uow: UoWDep) -> CountResponse:
    return CountResponse(count=await read_state_service.total_unread(me, uow))
