from __future__ import annotations

from dataclasses import dataclass

from team_chat.application.dto.message import MessageView
from team_chat.domain.entities.channel import Channel
from team_chat.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class ChannelSummary:
    channel: Channel
    unread_count: int
    last_message: MessageView | None = None
    # DM peer. None for public channels or when the peer cannot be resolved.
    other_user: User | None = None
