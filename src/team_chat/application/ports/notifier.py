from __future__ import annotations

from typing import Protocol

from team_chat.domain.entities.channel import Channel
from team_chat.domain.entities.message import Message
from team_chat.domain.value_objects.ids import UserRef


class OfflineNotifier(Protocol):
    """Outbound notification collaborator (push, email, ...)."""

    async def notify(
        self, channel: Channel, message: Message, recipients: list[UserRef],
    ) -> None: ...
