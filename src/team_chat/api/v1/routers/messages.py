from __future__ import annotations

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from team_chat.api.deps import CurrentUser, NotifierDep, PublisherDep, UoWDep
from team_chat.api.v1.schemas.common import PaginatedResponse
from team_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from team_chat.application.dto.message import PageRequest
from team_chat.services import message_service

router = APIRouter(prefix="/api/v1/chat/channels", tags=["messages"])


@router.get("/{channel_id}/messages", response_model=PaginatedResponse[MessageResponse])
async def list_messages(
    channel_id: UUID,
    me: CurrentUser,
    uow: UoWDep,
    cursor: str | None = Query(None),
    direction: Literal["before", "after"] = Query("before"),
    limit: int = Query(50, ge=1, le=200),
) -> PaginatedResponse[MessageResponse]:
    page = await message_service.list_messages(
        channel_id, me, PageRequest(cursor=cursor, limit=limit, direction=direction), uow,
    )
    return PaginatedResponse[MessageResponse](
        items=[MessageResponse.from_view(v) for v in page.items],
        next_cursor=page.next_cursor,
    )


@router.post("/{channel_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    channel_id: UUID,
    body: SendMessageRequest,
    me: CurrentUser,
    uow: UoWDep,
    publisher: PublisherDep,
    notifier: NotifierDep,
    response: Response,
) -> MessageResponse:
    view, created = await message_service.send_message(
        body.to_dto(channel_id=channel_id), me, uow, publisher, notifier,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return MessageResponse.from_view(view)
