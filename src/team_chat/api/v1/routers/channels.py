from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response, status

from team_chat.api.deps import CurrentUser, UoWDep
from team_chat.api.v1.schemas.channel import (
    ChannelResponse,
    ChannelSummaryResponse,
    CreateChannelRequest,
)
from team_chat.services import channel_service

router = APIRouter(prefix="/api/v1/chat/channels", tags=["channels"])


@router.get("", response_model=list[ChannelSummaryResponse])
async def list_channels(me: CurrentUser, uow: UoWDep) -> list[ChannelSummaryResponse]:
    summaries = await channel_service.list_channels_for(me, uow)
    return [ChannelSummaryResponse.from_summary(s, me) for s in summaries]


@router.post("", response_model=ChannelResponse)
async def provision_channel(
    body: CreateChannelRequest,
    me: CurrentUser,
    uow: UoWDep,
    response: Response,
) -> ChannelResponse:
    channel, created = await channel_service.provision_public_channel(body.name, me, uow)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ChannelResponse.from_channel(channel)


@router.get("/{channel_id}", response_model=ChannelResponse)
async def get_channel(channel_id: UUID, me: CurrentUser, uow: UoWDep) -> ChannelResponse:
    channel = await channel_service.get_channel(channel_id, me, uow)
    return ChannelResponse.from_channel(channel)


@router.post("/{channel_id}/join", response_model=ChannelResponse)
async def join_channel(channel_id: UUID, me: CurrentUser, uow: UoWDep) -> ChannelResponse:
    channel = await channel_service.join_channel(me, channel_id, uow)
    return ChannelResponse.from_channel(channel)
