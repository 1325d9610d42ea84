from __future__ import annotations

import logging

from team_chat.domain.entities.channel import Channel
from team_chat.domain.entities.message import Message
from team_chat.domain.value_objects.ids import UserRef

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Default OfflineNotifier: records who would have been notified.

    Push and e-mail delivery plug in behind the same port.
    """

    async def notify(
        self, channel: Channel, message: Message, recipients: list[UserRef],
    ) -> None:
        logger.info(
            "Notify %d recipient(s) of message %s in channel %s",
            len(recipients), message.id, channel.id,
        )
