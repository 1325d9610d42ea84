"""Server-side fan-out, invoked only after the corresponding write commits."""
from __future__ import annotations

import logging

from team_chat.application.ports.bus import EventPublisher
from team_chat.application.ports.notifier import OfflineNotifier
from team_chat.domain.entities.channel import Channel
from team_chat.domain.entities.message import Message
from team_chat.domain.events.channel_read import ChannelRead
from team_chat.domain.events.message_created import MessageCreated
from team_chat.domain.value_objects.ids import UserRef

logger = logging.getLogger(__name__)


async def publish_event(
    publisher: EventPublisher,
    channel: Channel,
    event: MessageCreated | ChannelRead,
) -> bool:
    """Publish on the channel's topic. A failure is logged, never raised.

    The write is already committed; a missed event is reconciled by the
    client's next refresh.
    """
    try:
        await publisher.publish(channel.topic, event.event_type.value, event.to_payload())
    except Exception:
        logger.exception(
            "Fan-out failed for %s on channel %s", event.event_type.value, channel.id,
        )
        return False
    return True


async def notify_offline(
    notifier: OfflineNotifier | None,
    channel: Channel,
    message: Message,
    recipients: list[UserRef],
) -> None:
    if notifier is None or not recipients:
        return
    try:
        await notifier.notify(channel, message, recipients)
    except Exception:
        logger.exception("Offline notification failed for message %s", message.id)
