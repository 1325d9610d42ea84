from __future__ import annotations

from fastapi import APIRouter, Response, status

from team_chat.api.deps import CurrentUser, NotifierDep, PublisherDep, UoWDep
from team_chat.api.v1.schemas.channel import ChannelResponse, OpenDirectChannelRequest
from team_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from team_chat.services import channel_service, message_service

router = APIRouter(prefix="/api/v1/chat/dms", tags=["direct-messages"])


@router.post("", response_model=ChannelResponse)
async def open_direct_channel(
    body: OpenDirectChannelRequest,
    me: CurrentUser,
    uow: UoWDep,
) -> ChannelResponse:
    channel = await channel_service.open_direct_channel(me, body.peer_ref, uow)
    return ChannelResponse.from_channel(channel)


@router.post("/{peer_ref}/messages", response_model=MessageResponse, status_code=201)
async def send_direct_message(
    peer_ref: str,
    body: SendMessageRequest,
    me: CurrentUser,
    uow: UoWDep,
    publisher: PublisherDep,
    notifier: NotifierDep,
    response: Response,
) -> MessageResponse:
    """Send to a DM pair that may not have a channel yet."""
    view, created = await message_service.send_message(
        body.to_dto(recipient_ref=peer_ref), me, uow, publisher, notifier,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return MessageResponse.from_view(view)
