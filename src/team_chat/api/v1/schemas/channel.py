from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from team_chat.api.v1.schemas.message import MessageResponse
from team_chat.api.v1.schemas.user import UserResponse
from team_chat.application.dto.channel import ChannelSummary
from team_chat.domain.entities.channel import Channel


class ChannelResponse(BaseModel):
    id: UUID
    type: str
    name: str
    topic: str
    participants: list[str] | None
    created_at: datetime

    @classmethod
    def from_channel(cls, channel: Channel) -> ChannelResponse:
        return cls(
            id=channel.id,
            type=channel.type,
            name=channel.name,
            topic=channel.topic,
            participants=list(channel.dm_participants) if channel.dm_participants else None,
            created_at=channel.created_at,
        )


class ChannelSummaryResponse(ChannelResponse):
    unread_count: int
    last_message: MessageResponse | None = None
    other_user: UserResponse | None = None

    @classmethod
    def from_summary(cls, summary: ChannelSummary, me: str) -> ChannelSummaryResponse:
        base = ChannelResponse.from_channel(summary.channel)
        peer = summary.channel.other_participant(me)
        return cls(
            **base.model_dump(),
            unread_count=summary.unread_count,
            last_message=(
                MessageResponse.from_view(summary.last_message)
                if summary.last_message
                else None
            ),
            other_user=(
                UserResponse.from_user(summary.other_user, peer) if peer is not None else None
            ),
        )


class CreateChannelRequest(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class OpenDirectChannelRequest(BaseModel):
    peer_ref: str = Field(min_length=1)
